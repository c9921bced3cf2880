from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings


# SQLite 빌링 DB 는 여러 스레드(스케줄러/요청)에서 공유된다
connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

# 엔진 생성
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,               # 연결이 죽었는지 자동 체크
    connect_args=connect_args,
)

# 세션 팩토리
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# 의존성 주입 함수
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
