"""
hifi-setup — provisioning and removal of the hifi-wifi network agent.
"""

__version__ = "0.1.0"
