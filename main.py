from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
import models
from database import engine, SessionLocal
from routers import chat, expenses, insights
from services.expense_repository import ExpenseRepository

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173,http://127.0.0.1:3000"

# Create tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Finance Assistant API",
    version="1.0.0",
    description="Personal finance analytics and conversational assistant",
)

app.state.expense_repository = ExpenseRepository(SessionLocal)

# Cannot use "*" with allow_credentials=True, so origins are listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

# Include routers
app.include_router(expenses.router, prefix="/expenses", tags=["Expenses"])
app.include_router(chat.router, prefix="/chat", tags=["Chat"])
app.include_router(insights.router)

@app.get("/")
async def root():
    return {"message": "Finance Assistant API", "version": "1.0.0", "docs": "/docs"}
