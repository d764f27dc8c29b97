"""
Harness - The load-test machinery.

- fees:      static EIP-1559 fee policy with chain minimums
- nonces:    local nonce allocation, one node query per run
- calls:     calldata and transaction construction per attempt
- outcomes:  call attempt and outcome variants
- metrics:   run report fold and finalisation
- pacing:    delay strategies between attempts
- preflight: funding / code / dry-run checks before the loop
- loop:      the sequential submission loop
"""
