"""Lucky Number service pair.

Two small HTTP services used to demonstrate dependent-service startup:
 - backend: slow startup, simulated processing latency, fault injection
 - frontend: gates its own startup on the backend's readiness, then
   forwards requests and renders the result

The implementation is intentionally small so it can be audited and explained.
"""
