"""
PolyglotQuest 后端入口
---------------------------------
功能：
- 创建 FastAPI 应用并挂载路由（认证、进度、支付）
- 启动时初始化存储；关闭时等待未发送完的邮件并释放存储
- 统一处理业务异常（PolyglotError）、存储异常（StoreError）、参数校验与 HTTP 异常
- 所有错误均以 {code, message, data} 返回

运行：
cd backend && uvicorn app.main:app --port 3001
"""

from contextlib import asynccontextmanager
import os

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .models.response_schema import ApiResponse
from .routers import auth_router, payment_router, progress_router
from .services.errors import PolyglotError, StoreError
from .services.notification_service import get_notification_service
from .services.store import get_store
from .utils.logger import log


@asynccontextmanager
async def lifespan(app: FastAPI):
    store = get_store()
    await store.init()
    log.info(f"存储已初始化: {type(store).__name__}")
    yield
    await get_notification_service().drain()
    await store.close()


async def handle_polyglot_error(request: Request, exc: PolyglotError) -> JSONResponse:
    body = ApiResponse.error(exc.status_code, exc.message, {"error": exc.code})
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = ApiResponse.error(400, "请求参数错误", {"error": "InvalidInput", "detail": jsonable_encoder(exc.errors())})
    return JSONResponse(status_code=400, content=body.model_dump())


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = ApiResponse.error(exc.status_code, str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=getattr(exc, "headers", None))


async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
    log.error(f"存储错误: {request.method} {request.url.path}: {exc}", exc_info=exc)
    body = ApiResponse.error(500, "服务器内部错误")
    return JSONResponse(status_code=500, content=body.model_dump())


def create_app() -> FastAPI:
    app = FastAPI(title="PolyglotQuest API", version="1.0.0", lifespan=lifespan)

    app.add_exception_handler(PolyglotError, handle_polyglot_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)

    app.include_router(auth_router.router, prefix="/api/auth", tags=["认证"])
    app.include_router(progress_router.router)
    app.include_router(payment_router.router)

    @app.get("/")
    async def root():
        return {"status": "PolyglotQuest Backend Online", "version": app.version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 3001)))
