"""BTK site lookup client.

Checks whether domains are blocked in Turkey by querying the BTK "site sorgu"
form, solving its CAPTCHA with a vision model.
"""

__version__ = "3.0.0"
