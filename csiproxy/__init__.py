"""Request handling for a Windows storage proxy: filesystem, SMB, iSCSI, volume and system services, plus a JUnit report filter."""

__version__ = "0.1.0"