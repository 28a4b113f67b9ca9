"""
Offline Proxy Module

Route classification, cache-first / network-first strategies and the
generation lifecycle.
"""
