"""dashcached - HTTP daemon and CLI for the dashcache library."""
