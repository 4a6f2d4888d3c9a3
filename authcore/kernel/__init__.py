"""
Kernel layer of the authentication core.

- Models (accounts, immutable audit events)
- Identity (password policy and hashing, tokens, status gate, account store)
- Throttle (per-account lockout, per-address rate limit)
- Events (tamper-evident audit trail)

Invariants:
- Plaintext passwords never leave the call that received them
- Audit rows are inserted once and never updated
"""
