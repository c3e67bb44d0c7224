"""
Place comments.

Responsibilities:
- Keep anonymous comments per place, newest first, for the process lifetime.
- Reject empty, over-long, or link-bearing comments at write time.
- Gate deletion behind the shared admin secret.
- Offer an optional per-client posting cooldown.
"""
