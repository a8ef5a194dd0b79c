from userhub.controllers.profile_controller import router as profile_router
from userhub.controllers.upload_controller import router as upload_router
from userhub.controllers.user_controller import router as user_router
from userhub.routing import RouteTable, compose


def default_route_table() -> RouteTable:
    """Resource routers in their fixed mount order"""
    return compose([
        ("/api/v1/user", user_router),
        ("/api/v1/upload", upload_router),
        ("/api/v1/profile", profile_router),
    ])
