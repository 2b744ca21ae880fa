"""
Services module for business logic separation.

- slug_service: slug lifecycle and creation rate limit
- identity: user existence checks against the identity provider
"""
