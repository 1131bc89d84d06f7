"""
Helpers shared by models and routers.
"""
