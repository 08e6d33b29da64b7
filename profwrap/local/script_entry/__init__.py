"""
Entry point scripts for the child processes spawned by the supervisor.

`service` runs the wrapped service on its own (the profiled child runs it
under cProfile) and `report` is the default profile post-processor.
"""
