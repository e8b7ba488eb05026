import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from errors import AdminMissingError, AuthError, NotFoundError, StudioError
from logging_config import setup_logging
from schemas import (
    ChangePasswordModel,
    LoginModel,
    Order,
    OrderCreate,
    OrderStatus,
    OrderUpdate,
    PriceEntry,
    Project,
    ProjectFields,
    ProjectUpdate,
)
from security import create_access_token, decode_access_token, hash_password, verify_password
from store import JsonStore, get_store

setup_logging()
logger = logging.getLogger("studio.main")

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_store().initialize_if_absent()
    port = get_settings().PORT
    logger.info(f"Server running on port {port}")
    logger.info(f"Main site: http://localhost:{port}")
    logger.info(f"Admin panel: http://localhost:{port}/admin")
    yield
    logger.info("Server stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url=None,
    openapi_url="/api/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error translation

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(StudioError)
async def studio_error_handler(request: Request, exc: StudioError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return error_response(exc.status_code, exc.public_message)
    return error_response(exc.status_code, str(exc) or exc.public_message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return error_response(422, f"{location}: {message}" if location else message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(500, StudioError.public_message)


# Utility functions

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_id(items: List[dict]) -> int:
    """Millisecond timestamp, bumped past the largest existing id when needed."""
    candidate = int(time.time() * 1000)
    existing = [item["id"] for item in items if isinstance(item.get("id"), int)]
    if existing and candidate <= max(existing):
        candidate = max(existing) + 1
    return candidate


def collection(doc: dict, key: str, factory):
    """Return doc[key], replacing a missing or null value with factory()."""
    if doc.get(key) is None:
        doc[key] = factory()
    return doc[key]


def find_index(items: List[dict], item_id: int) -> Optional[int]:
    for index, item in enumerate(items):
        if item.get("id") == item_id:
            return index
    return None


def require_admin(doc: dict) -> dict:
    admin = doc.get("admin")
    if not admin or not admin.get("passwordHash") or not admin.get("passwordSalt"):
        raise AdminMissingError("document has no admin record")
    return admin


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthError("Not authenticated")
    return authorization.split(" ", 1)[1]


def get_current_admin(token: str = Depends(get_bearer_token), store: JsonStore = Depends(get_store)) -> dict:
    payload = decode_access_token(token)
    admin = require_admin(store.read())
    if payload.get("sub") != admin.get("username"):
        raise AuthError("Invalid token")
    return admin


# Data

@app.get("/api/data")
def get_data(store: JsonStore = Depends(get_store)):
    return store.read()


@app.post("/api/reset")
def reset_data(store: JsonStore = Depends(get_store)):
    doc = store.reset()
    logger.warning("Data reset to defaults")
    return doc


# Prices

@app.get("/api/prices")
def get_prices(store: JsonStore = Depends(get_store)):
    return store.read().get("prices") or {}


@app.post("/api/prices")
def replace_prices(payload: Dict[str, PriceEntry], store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        doc["prices"] = {key: entry.to_doc() for key, entry in payload.items()}
    return doc["prices"]


@app.put("/api/prices/{key}")
def update_price(key: str, payload: PriceEntry, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        prices = collection(doc, "prices", dict)
        prices[key] = payload.to_doc()
    return prices


# Portfolio

@app.get("/api/portfolio")
def get_portfolio(store: JsonStore = Depends(get_store)):
    return store.read().get("portfolio") or []


@app.post("/api/portfolio")
def replace_portfolio(payload: List[Project], store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        doc["portfolio"] = [project.to_doc() for project in payload]
    return doc["portfolio"]


@app.post("/api/portfolio/items", status_code=201)
def add_project(payload: ProjectFields, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        portfolio = collection(doc, "portfolio", list)
        project = Project(id=next_id(portfolio), **payload.model_dump()).to_doc()
        portfolio.append(project)
    return project


@app.patch("/api/portfolio/{project_id}")
def update_project(project_id: int, payload: ProjectUpdate, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        portfolio = collection(doc, "portfolio", list)
        index = find_index(portfolio, project_id)
        if index is None:
            raise NotFoundError("Project not found")
        portfolio[index].update(payload.to_doc(exclude_unset=True, exclude_none=True))
        project = portfolio[index]
    return project


@app.delete("/api/portfolio/{project_id}")
def delete_project(project_id: int, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        doc["portfolio"] = [p for p in doc.get("portfolio") or [] if p.get("id") != project_id]
    return {"success": True}


# Orders

@app.get("/api/orders")
def get_orders(store: JsonStore = Depends(get_store)):
    return store.read().get("orders") or []


@app.post("/api/orders")
def create_order(payload: OrderCreate, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        orders = collection(doc, "orders", list)
        order = Order(
            id=next_id(orders),
            status=OrderStatus.new,
            created_at=now_iso(),
            **payload.model_dump(),
        ).to_doc()
        orders.insert(0, order)
    logger.info(f"New order {order['id']} from {order['name']}")
    return order


@app.patch("/api/orders/{order_id}")
def update_order(order_id: int, payload: OrderUpdate, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        orders = collection(doc, "orders", list)
        index = find_index(orders, order_id)
        if index is None:
            raise NotFoundError("Order not found")
        orders[index].update(payload.to_doc(exclude_unset=True, exclude_none=True))
        order = orders[index]
    return order


@app.delete("/api/orders/{order_id}")
def delete_order(order_id: int, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        doc["orders"] = [o for o in doc.get("orders") or [] if o.get("id") != order_id]
    return {"success": True}


# Auth

@app.post("/api/auth/login")
def login(payload: LoginModel, store: JsonStore = Depends(get_store)):
    admin = require_admin(store.read())
    if payload.username != admin.get("username") or not verify_password(
        payload.password, admin["passwordHash"], admin["passwordSalt"]
    ):
        logger.warning(f"Failed login attempt for '{payload.username}'")
        raise AuthError("Invalid username or password")
    token = create_access_token({"sub": admin["username"]})
    return {"success": True, "token": token}


@app.post("/api/auth/change-password")
def change_password(payload: ChangePasswordModel, store: JsonStore = Depends(get_store)):
    with store.transaction() as doc:
        admin = require_admin(doc)
        if not verify_password(payload.current_password, admin["passwordHash"], admin["passwordSalt"]):
            raise AuthError("Current password is incorrect")
        hashed = hash_password(payload.new_password)
        admin["passwordHash"] = hashed.hash
        admin["passwordSalt"] = hashed.salt
    logger.info("Admin password changed")
    return {"success": True}


@app.get("/api/auth/me")
def get_me(current_admin: dict = Depends(get_current_admin)):
    return {"username": current_admin["username"]}


# Pages

@app.get("/health")
def health_check():
    return {"status": "ok", "version": settings.APP_VERSION}


def send_page(name: str) -> FileResponse:
    path = Path(get_settings().PUBLIC_DIR) / name
    if not path.is_file():
        raise NotFoundError(f"{name} not found")
    return FileResponse(path)


@app.get("/", include_in_schema=False)
def index_page():
    return send_page("index.html")


@app.get("/admin", include_in_schema=False)
def admin_page():
    return send_page("admin.html")


public_dir = Path(settings.PUBLIC_DIR)
if public_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(public_dir)), name="public")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
