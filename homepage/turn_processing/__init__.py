"""Move processing helpers.

This package centralizes validation + board rules so moves from the web page
and from Slack flow through the same pipeline and show up consistently in
server logs.
"""
