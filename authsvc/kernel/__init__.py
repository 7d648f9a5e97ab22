"""
Kernel Layer

The authentication domain logic and the models it persists:
- Identity Core (hashing, tokens, auth service, account store contract)
- Account model

The kernel never imports from the API layer.
"""
