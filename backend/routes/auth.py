# backend/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from sqlalchemy import func
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user
from utils.audit import write_log, client_ip
from models import users as models
from schemas import user as schemas
from schemas.common import MessageResponse
from database import get_db, unit_of_work

router = APIRouter(tags=["Auth"])

# Register a new customer account
@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def signup(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    # Normalize email input
    normalized_email = user.email.strip().lower()

    # Check for existing user
    db_user = db.query(models.User).filter(func.lower(models.User.email) == normalized_email).first()
    if db_user:
        write_log(
            db,
            user_id=None,
            action="REGISTER",
            resource="auth",
            status="FAIL",
            ip=client_ip(request),
            meta={"email": normalized_email, "reason": "Email exists"},
        )
        raise HTTPException(status_code=400, detail="Email already exists")

    # Create new user instance with hashed password
    new_user = models.User(
        name=user.name.strip(),
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role="customer",
    )
    with unit_of_work(db, "Error creating user"):
        db.add(new_user)

    # Log successful registration event
    write_log(
        db,
        user_id=new_user.id,
        action="REGISTER",
        resource="auth",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"email": new_user.email},
    )
    return {"message": "User created successfully"}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    db_user = db.query(models.User).filter(models.User.email == normalized_email).first()

    if not db_user:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Unknown email"})
        raise HTTPException(status_code=400, detail="Invalid email")

    if not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Bad password"})
        raise HTTPException(status_code=400, detail="Invalid password")

    # Generate access token
    token = create_access_token(data={"sub": db_user.id, "role": db_user.role})

    # Log successful login event
    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return schemas.Token(token=token, user_id=db_user.id)


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return schemas.UserResponse.model_validate(current_user)
