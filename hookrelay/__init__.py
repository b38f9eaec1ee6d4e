"""hookrelay - review webhook to CI trigger relay"""
__version__ = "0.1.0"
