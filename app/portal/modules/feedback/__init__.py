"""
Feedback module: public submission and tracking.

Scope:
- Quick form (all fields at once) and the four-step wizard
- Evidence images (png/jpg/jpeg, size-limited) kept in storage
- Public tracking lookup by tracking ID; personal fields are never shown
"""
