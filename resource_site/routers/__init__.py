"""
routers/ — Request handlers, one plain function per endpoint.

Handlers carry no routing decorators: routes.py maps method + path to
each of them and decides which ones sit behind the auth gate.
Handlers extract parameters, call services, and return responses.
"""
