"""lanscope package for local-network service discovery.

Turns raw mDNS / DNS-SD browse events into a deduplicated stream of
services, each with the addresses best suited for connecting to it, and
advertises local services for other hosts to find.
"""
