"""Internal modules for the auctioneer client.

These are not intended for direct use in application code.

Modules:
    http - Shared HTTP transport and TLS configuration
"""
