"""Authentication and authorization.

Learn: Two ways to sign in, one way to stay signed in:
1. Username/password → CredentialVerifier → session token
2. Google ID token → AccountProvisioner (find, link or create) → session token

Every protected request then passes the AuthorizationGate, which
re-resolves the token subject through the IdentityResolver and hands
a read-only CurrentUser to the route.
"""
