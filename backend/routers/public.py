from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
def root():
    return {"message": "Symposium Registration API is running"}


@router.get("/health")
def health_check():
    return {"status": "healthy"}


@router.get("/routes")
def list_routes(request: Request):
    paths = request.app.openapi().get("paths", {})
    return [
        {"path": path, "methods": sorted(method.upper() for method in operations)}
        for path, operations in sorted(paths.items())
    ]
