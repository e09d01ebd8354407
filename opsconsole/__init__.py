"""
Operations console backend.

Authorization-gated mutations over delivery notes and user accounts, with
inventory reversal and an append-only audit trail.
"""
