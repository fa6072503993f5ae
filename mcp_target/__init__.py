"""Target Demo MCP Servers - Model Context Protocol servers for a demo retail flow.

This package exposes a fake Target customer authentication, product search,
cart/checkout and Circle membership flow to conversational agents through the
Model Context Protocol (MCP), with several tool servers multiplexed on one process.
"""

__version__ = "0.1.0"
__author__ = "Target Demo Team"
