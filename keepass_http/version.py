"""KeePassHTTP Client Meta information.
   Async client for the KeePassHTTP credential store protocol.
"""
__title__ = 'keepass_http'
__description__ = (
   'Async client for the KeePassHTTP protocol: association '
   'handshake and encrypted credential lookups.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/keepass-http'
