"""
auth — Account credential module.

Provides:
  • Password hashing (scrypt with a per-account salt)
  • Access token signing & verification (JWT, HS256)
  • ``CredentialService`` — register / login / profile
  • Register / Login / Profile API routes
  • ``get_current_claims`` FastAPI dependency
"""
