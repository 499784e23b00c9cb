"""Envault Meta information.
   Envault keeps test-automation credentials encrypted at rest
   inside flat environment files.
"""
__title__ = 'envault'
__description__ = (
   'Envault keeps test-automation credentials encrypted at rest '
   'inside flat environment files.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
