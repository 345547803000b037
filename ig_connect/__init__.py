"""Instagram Business account connection and Graph API relay service."""
