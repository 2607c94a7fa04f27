"""Services Layer — persistence stores, authentication flow, tag generation, uploads.

Invariants:
    - Stores take an AsyncSession and never commit; routes own the transaction
    - Services call core/ for every policy decision

Design Decisions:
    - One store per aggregate (users, case studies, settings, inquiries) for locality
"""
