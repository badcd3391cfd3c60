"""Registry: the authorized catalog of known contract addresses.

The registry provides:
- Cataloging: one description per active contract address
- Batches: bounded, all-or-nothing bulk add, update and remove
- Authorization: admin and manager roles gating every write
- Notifications: ordered events for each committed call
"""
