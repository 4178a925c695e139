"""Match engine: rules, state store, countdowns, state machine and sessions.

Nothing in this package imports Flask or Socket.IO; HTTP routes and socket
handlers reach it through ``SessionRegistry`` and ``Session``.
"""
