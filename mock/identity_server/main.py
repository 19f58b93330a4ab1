from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel
import json
import os
import secrets

app = FastAPI(title="Mock Identity Provider", version="1.0.0")

# Operators as {"email": {"uid": ..., "password": ...}}; override with MOCK_IDENTITY_USERS
USERS = json.loads(os.environ.get("MOCK_IDENTITY_USERS", "null")) or {
    "guru@sekolah.sch.id": {"uid": "guru-1", "password": "rahasia"},
    "admin@sekolah.sch.id": {"uid": "admin-1", "password": "admin123"},
}

# id_token -> uid for live sessions
TOKENS: dict[str, str] = {}


class SignInBody(BaseModel):
    email: str
    password: str


class SignOutBody(BaseModel):
    id_token: str


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/auth/sign-in")
def sign_in(body: SignInBody):
    user = USERS.get(body.email)
    if user is None or user["password"] != body.password:
        raise HTTPException(status_code=401, detail="invalid credentials")
    token = secrets.token_urlsafe(24)
    TOKENS[token] = user["uid"]
    return {"uid": user["uid"], "email": body.email, "id_token": token}

@app.post("/auth/sign-out", status_code=204)
def sign_out(body: SignOutBody):
    if TOKENS.pop(body.id_token, None) is None:
        raise HTTPException(status_code=404, detail="session not found")
    return Response(status_code=204)
