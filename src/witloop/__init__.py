"""witloop: motor de conversação orientado a sessões sobre a API converse."""

__version__ = "0.1.0"
