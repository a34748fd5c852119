"""
Portwatch - supervise a port-forward and kill it when it stops forwarding.

Wraps a forwarding subprocess (kubectl port-forward by default), passes its
output through, discovers the local endpoints it publishes, and health-checks
them so a dead tunnel ends the session instead of lingering.
"""

__version__ = "0.1.0"
__author__ = "Philip Orange <git@philiporange.com>"
