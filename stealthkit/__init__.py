"""
stealthkit - Stealth Address Protocol (ERC-5564 / ERC-6538)

Cryptographic core for one-time stealth addresses on secp256k1:
- Dual-key stealth meta-addresses
- Sender-side stealth address generation
- Recipient-side announcement scanning with view tags
- Stealth private key recovery
"""

__version__ = "0.1.0"
