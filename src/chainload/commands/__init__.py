"""
Commands - click command implementations.

- run:       preflight, then drive the load test and print the report
- preflight: run the preflight checks only
- entries:   read the contract's entry count
"""
