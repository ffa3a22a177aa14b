"""
Domain services that hold no storage of their own: feed assembly, engagement state
machines, the session gate and invalidation fan-out.
"""
