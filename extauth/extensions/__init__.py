"""
Bundled extensions.

Listing a bundled extension's name in config imports
`extauth.extensions.<name>`, which registers it.

Available:
- invitation: invite users by token
"""
