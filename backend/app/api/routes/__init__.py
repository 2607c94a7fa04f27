"""Route Modules — one file per resource (auth, case studies, profile, inquiries, admin).

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain business logic (delegate to core/ and services/)

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
