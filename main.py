import logging
from typing import Optional

from fastapi import FastAPI, File, Form, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pymongo.errors import PyMongoError

import catalog
import database
import orders
import payments
from config import config
from errors import BookshopError
from logging_config import setup_logging
from schemas import BookUpdate, CheckoutRequest, OrderCreate

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Bookshop API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------- Error Handlers ---------------------
@app.exception_handler(BookshopError)
async def bookshop_error_handler(request: Request, exc: BookshopError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": str(exc)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": str(exc)})


# ------------------------- Basic Routes -----------------------
@app.get("/")
def root():
    return {"message": "Bookshop API is running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    if database.db is None:
        return response
    response["database_name"] = database.db.name
    response["connection_status"] = "Connected"
    try:
        response["collections"] = database.db.list_collection_names()[:10]
        response["database"] = "✅ Connected & Working"
    except PyMongoError as e:
        response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    return response


# ------------------------- Books CRUD -------------------------
@app.post("/books", status_code=201)
def create_book(
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
):
    cover_path = ""
    if cover_image is not None and cover_image.filename:
        cover_path = catalog.save_cover_image(cover_image.filename, cover_image.file)
    return catalog.create_book({
        "title": title,
        "author": author,
        "description": description,
        "price": price,
        "stock": stock,
        "category": category,
        "coverImage": cover_path,
    })


@app.get("/books")
def list_books():
    return catalog.list_books()


@app.get("/books/{book_id}")
def get_book(book_id: str):
    return catalog.get_book(book_id)


@app.put("/books/{book_id}")
def update_book(book_id: str, payload: BookUpdate):
    return catalog.replace_book(book_id, payload)


@app.delete("/books/{book_id}")
def delete_book(book_id: str):
    catalog.delete_book(book_id)
    return {"message": "Book deleted"}


@app.get(f"{catalog.UPLOAD_URL_PREFIX}/{{filename}}")
def get_upload(filename: str):
    return FileResponse(catalog.upload_path(filename))


# ------------------------- Checkout ---------------------------
@app.post("/checkout")
def create_checkout_session(payload: CheckoutRequest):
    session = payments.create_session(payload.cart, payload.delivery)
    return {"url": session.url, "sessionId": session.id}


# ------------------------- Orders -----------------------------
@app.post("/orders", status_code=201)
def create_order(payload: OrderCreate):
    return orders.create_order(payload)


@app.get("/orders")
def list_orders(user_id: Optional[str] = Query(None, alias="userId")):
    return orders.list_orders(user_id)


@app.put("/orders/cancel/{order_id}")
def cancel_order(order_id: str):
    order = orders.cancel_order(order_id)
    return {"message": "Order cancelled successfully", "order": order}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
