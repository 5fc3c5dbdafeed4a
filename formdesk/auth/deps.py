from fastapi import Request, Depends, HTTPException
from sqlalchemy.orm import Session
from formdesk.db.session import get_db
from formdesk.core.security import SESSION_COOKIE, session_user_id
from formdesk.db.models.user import User


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user_id = session_user_id(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid session")
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
