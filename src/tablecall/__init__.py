"""tablecall: restaurant back-office API.

Owners manage restaurants, branches and tables. Diners scan a table's QR
code to call the waiter, and the owner's dashboard gets the request pushed
over a WebSocket the moment it is stored.
"""

__version__ = "0.1.0"
