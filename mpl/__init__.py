"""MongoDB primary labeler.

Sidecar process that keeps a ``primary`` label on the pods of a MongoDB replica set
in sync with the member the replica set has elected primary:
 - resolve the current primary from any reachable member (``hello`` handshake)
 - verify the primary is one of the selected pods
 - converge every selected pod's ``primary`` label, one strategic-merge patch per pod

Each cycle is stateless; a failed cycle is simply retried on the next tick.
"""

__version__ = "0.1.0"
