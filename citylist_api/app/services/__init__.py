"""
Service layer.

Each service encapsulates the logic for one concern (city store,
queries, settings, audit log, admin credentials) and receives the
database path it works on through its constructor.  The application
factory builds one instance of each and shares it with the request
handlers via ``app.state``.
"""
