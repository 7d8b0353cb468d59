from fastapi import APIRouter, Depends, HTTPException, status, Request
from datetime import timedelta

import schemas
from auth import (
    authenticate_admin,
    create_access_token,
    get_current_active_admin,
    ACCESS_TOKEN_EXPIRE_MINUTES
)
from .limiter import limiter

router = APIRouter(prefix="/api/admin", tags=["Authentication"])


@router.post("/login", response_model=schemas.ApiResponse[schemas.Token])
@limiter.limit("5/minute")
async def login(request: Request, admin_login: schemas.AdminLogin):
    """Admin login endpoint - Rate limited to prevent brute force attacks"""
    admin = authenticate_admin(admin_login.username, admin_login.password)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": admin.username}, expires_delta=access_token_expires
    )
    return schemas.ApiResponse(data=schemas.Token(access_token=access_token, token_type="bearer"))


@router.get("/me", response_model=schemas.ApiResponse[schemas.AdminResponse])
async def read_admin_me(current_admin: schemas.AdminResponse = Depends(get_current_active_admin)):
    """Get current admin user info"""
    return schemas.ApiResponse(data=current_admin)
