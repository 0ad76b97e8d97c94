"""
Kernel layer: storage models, audit log and the shared error taxonomy.

The graph engine in ``lyceum.engines.graph`` only takes the error classes and
the WorkflowStatus enum from here; services translate rows into plain graph
records.
"""
