# src/main.py

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from src.common.database.database import connect_to_db, close_db_connection
from src.common.config import settings
from src.router.routers import include_routers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_db()
    yield
    await close_db_connection()

# Initialize FastAPI app with lifespan manager
app = FastAPI(
    title="City Health Office Records API",
    description="Patient, maternal and child health records with role-based access for the City Health Office",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware for CORS using allowed origins from settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers from a separate file
include_routers(app)

# Root endpoint
@app.get("/", response_class=HTMLResponse)
async def root():
    html_content = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>City Health Office Records API</title>
    <style>
        body {
            font-family: system-ui, -apple-system, sans-serif;
            line-height: 1.6;
            max-width: 720px;
            margin: 4rem auto;
            padding: 0 1.5rem;
            color: #1f2937;
        }

        h1 {
            color: #0f766e;
        }

        .endpoint {
            font-family: 'SF Mono', 'Consolas', monospace;
            font-size: 0.9rem;
        }

        a {
            color: #0f766e;
        }
    </style>
</head>
<body>
    <h1>City Health Office Records API</h1>
    <p>Patient profiles, consultations, maternal and baby health records, appointments and doctor schedules.</p>
    <ul>
        <li><span class="endpoint">POST /auth/signup</span>, <span class="endpoint">POST /auth/login</span></li>
        <li><span class="endpoint">GET /patients</span> and the patient record routes</li>
        <li><span class="endpoint">GET /schedules/{doctor_id}/slots</span> and <span class="endpoint">POST /appointments</span></li>
        <li><span class="endpoint">WS /ws/{collection}</span> for live updates</li>
    </ul>
    <p><a href="/docs">Swagger UI</a> &middot; <a href="/redoc">ReDoc</a></p>
</body>
</html>
"""
    return html_content
