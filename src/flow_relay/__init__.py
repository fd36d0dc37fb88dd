"""Flow Relay - Langflow run API relay service"""

__version__ = "0.1.0"
