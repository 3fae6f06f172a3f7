from rig_splitter.api.v1.router import router

__all__ = ["router"]
