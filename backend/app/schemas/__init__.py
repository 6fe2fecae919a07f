# Pydantic schemas
from app.schemas.user import (
    UserSummary,
    UserResponse,
    UserProfileResponse,
    UserUpdate,
    ExperienceCreate,
    ExperienceResponse,
)
from app.schemas.auth import UserRegister, UserLogin, Token, LoginResponse
from app.schemas.post import PostCreate, PostResponse, CommentCreate, CommentResponse
from app.schemas.search import SearchResult, SearchResponse
