from app_factory import create_app
from routes.http import router as http_router

app = create_app()
app.include_router(http_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
