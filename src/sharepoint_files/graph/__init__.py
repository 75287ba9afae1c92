"""Microsoft Graph authentication, transport and resource resolution."""
