"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for candidates, job positions, the skill
synonym table and the persisted candidate matches.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Boolean, Column, DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class CandidateProfile(Base):
    """Candidate profile with the text extracted from the uploaded CV."""

    __tablename__ = "candidate_profiles"

    user_id = Column(String, primary_key=True)
    full_name = Column(String, nullable=True)
    cv_text = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_record(self) -> dict:
        return {"id": self.user_id, "full_name": self.full_name, "cv_text": self.cv_text}


class JobPosition(Base):
    """Open job posting."""

    __tablename__ = "job_positions"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    required_skills = Column(JSON, nullable=False, default=list)
    employment_type = Column(String, nullable=True)  # full-time, part-time, contract, internship
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_record(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "required_skills": list(self.required_skills or []),
            "employment_type": self.employment_type,
            "is_active": self.is_active,
        }


class SkillSynonym(Base):
    """One row of the synonym table: a term and its synonyms."""

    __tablename__ = "skill_synonyms"

    term = Column(String, primary_key=True)
    synonyms = Column(JSON, nullable=False, default=list)

    def to_record(self) -> dict:
        return {"term": self.term, "synonyms": list(self.synonyms or [])}


class CandidateMatch(Base):
    """Persisted match, unique per (candidate_id, job_id)."""

    __tablename__ = "candidate_matches"

    candidate_id = Column(String, primary_key=True)
    job_id = Column(String, primary_key=True)
    match_score = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def to_record(self) -> dict:
        return {
            "candidate_id": self.candidate_id,
            "job_id": self.job_id,
            "match_score": self.match_score,
        }


def create_db_engine(db_path: Path):
    # Scoring workers share the engine; each operation uses its own session
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=create_db_engine(db_path))
    return Session()
