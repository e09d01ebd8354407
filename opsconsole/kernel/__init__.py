"""
Kernel Layer

Foundational components shared by every privileged mutation:
- Data models (accounts, inventory, delivery notes, audit log)
- Identity Core (credentials, identities, profiles)
- Authorization Checker (exact-role checks against stored profiles)
- Audit Recorder (append-only records of every mutation outcome)
"""
