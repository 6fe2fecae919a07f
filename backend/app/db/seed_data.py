"""
Database Seed Data Module

Demo accounts and sample content for a fresh database. Seeding is skipped
when any user already exists.
Run with: python -m app.db.seed_data
"""
import asyncio
from datetime import datetime, timedelta
from typing import Dict, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db
from app.core.logging_config import logger
from app.core.security import get_password_hash, generate_random_password
from app.core.types import utcnow
from app.models.user import User, UserRole, Experience
from app.models.post import Post
from app.models.connection import Connection, ConnectionStatus
from app.models.job import Job, JobType, JobLocationType
from app.models.event import Event
from app.models.article import Article
from app.models.pitch import Pitch, PitchStatus
from app.services.auth_service import compute_profile_completion


# ==================== Sample Data Constants ====================

DEMO_ACCOUNTS = [
    {"username": "admin", "email": "admin@hindustanfounders.com", "name": "Network Admin",
     "role": UserRole.ADMIN, "title": "Community Manager", "company": "Hindustan Founders Network",
     "location": "New Delhi", "is_verified": True},
    {"username": "founder", "email": "demo@foundernetwork.com", "name": "Demo Founder",
     "role": UserRole.FOUNDER, "title": "CEO", "company": "Demo Startup", "location": "India",
     "bio": "Demo account for testing", "is_verified": True},
    {"username": "investor", "email": "investor@foundernetwork.com", "name": "Demo Investor",
     "role": UserRole.INVESTOR, "title": "Partner", "company": "Bharat Seed Fund",
     "location": "Mumbai", "bio": "Early-stage investor in consumer and fintech", "is_verified": True},
]

SAMPLE_MEMBERS = [
    {"username": "priya_patel", "email": "priya@example.in", "name": "Priya Patel",
     "role": UserRole.FOUNDER, "title": "Co-founder", "company": "KrishiTech", "location": "Ahmedabad",
     "bio": "Building precision farming tools for smallholders"},
    {"username": "arjun_verma", "email": "arjun@example.in", "name": "Arjun Verma",
     "role": UserRole.JOB_SEEKER, "title": "Backend Engineer", "company": None, "location": "Bengaluru",
     "bio": "Python and distributed systems"},
    {"username": "kavya_nair", "email": "kavya@example.in", "name": "Kavya Nair",
     "role": UserRole.STUDENT, "title": "MBA Candidate", "company": "IIM Bangalore", "location": "Bengaluru"},
    {"username": "rohan_mehta", "email": "rohan@example.in", "name": "Rohan Mehta",
     "role": UserRole.EXPLORER, "title": "Product Designer", "company": "Freelance", "location": "Pune"},
]

SAMPLE_POSTS = [
    ("founder", "We just closed our pre-seed round! Grateful to everyone in this network who made intros."),
    ("investor", "Looking for founders building for Bharat. Agritech and vernacular content especially welcome."),
    ("priya_patel", "Our pilot with 200 farmers in Gujarat cut water usage by 30%. Hiring field engineers soon."),
    ("arjun_verma", "Open to backend roles at early-stage startups. Happy to chat about Python and Postgres."),
]

SAMPLE_JOBS = [
    {"owner": "founder", "title": "Founding Engineer", "company": "Demo Startup", "location": "Bengaluru",
     "location_type": JobLocationType.HYBRID, "job_type": JobType.FULL_TIME,
     "description": "Own the backend from day one and help shape the engineering culture.",
     "skills": "python,fastapi,postgresql", "salary": "₹25-35 LPA"},
    {"owner": "priya_patel", "title": "Field Operations Intern", "company": "KrishiTech", "location": "Ahmedabad",
     "location_type": JobLocationType.ON_SITE, "job_type": JobType.INTERNSHIP,
     "description": "Work with farmers on sensor deployments across Gujarat.",
     "skills": "operations,gujarati,field research", "salary": "₹20,000/month"},
    {"owner": "founder", "title": "Growth Marketer", "company": "Demo Startup", "location": "Remote",
     "location_type": JobLocationType.REMOTE, "job_type": JobType.CONTRACT,
     "description": "Run acquisition experiments across social and referral channels.",
     "skills": "seo,content,analytics"},
]

SAMPLE_EVENTS = [
    {"owner": "admin", "title": "Startup India Summit 2025",
     "description": "Join the largest gathering of startups, investors, and industry leaders in India.",
     "location": "Pragati Maidan, New Delhi", "start": datetime(2025, 5, 15, 9), "end": datetime(2025, 5, 17, 18),
     "is_virtual": False, "category": "Conference",
     "image_url": "https://images.unsplash.com/photo-1540575467063-178a50c2df87"},
    {"owner": "founder", "title": "Founder's Fireside Chat",
     "description": "An intimate evening with successful founders sharing their journeys.",
     "location": "The Leela Palace, Bengaluru", "start": datetime(2025, 6, 5, 18), "end": datetime(2025, 6, 5, 21),
     "is_virtual": False, "category": "Networking", "capacity": 50,
     "image_url": "https://images.unsplash.com/photo-1515187029135-18ee286d815b"},
    {"owner": "investor", "title": "Virtual Pitch Competition",
     "description": "Pitch your startup to a panel of investors and win funding.",
     "location": None, "start": datetime(2025, 4, 20, 15), "end": datetime(2025, 4, 20, 18),
     "is_virtual": True, "category": "Pitch",
     "image_url": "https://images.unsplash.com/photo-1551818255-e6e10975bc17"},
]

SAMPLE_ARTICLES = [
    {"author": "investor", "title": "How to Pitch to Investors",
     "summary": "A guide for founders on creating the perfect pitch",
     "content": "Open with the problem, show traction early and know your numbers cold.",
     "category": "Fundraising", "tags": "pitching,fundraising",
     "image_url": "https://images.unsplash.com/photo-1552664730-d307ca884978"},
    {"author": "founder", "title": "Fundraising Strategies for Early-Stage Startups",
     "summary": "Learn how to raise your first round of funding",
     "content": "Angels, accelerators and micro VCs each want different signals from you.",
     "category": "Fundraising", "tags": "seed,angels",
     "image_url": "https://images.unsplash.com/photo-1553729459-efe14ef6055d"},
    {"author": "priya_patel", "title": "Building a Strong Founding Team",
     "summary": "Why your team matters more than your idea",
     "content": "Complementary skills and shared values outlast any single product bet.",
     "category": "Team", "tags": "hiring,culture",
     "image_url": "https://images.unsplash.com/photo-1522071820081-009f0129c71c"},
]

SAMPLE_PITCHES = [
    {"owner": "priya_patel", "name": "KrishiTech", "status": PitchStatus.REGISTERED,
     "description": "Low-cost soil sensors and advisory over WhatsApp for small farms.",
     "location": "Ahmedabad", "category": "Agritech", "funding_goal": "₹2 Cr"},
    {"owner": "founder", "name": "Demo Startup", "status": PitchStatus.FUNDED,
     "description": "Vernacular bookkeeping for kirana stores.",
     "location": "Bengaluru", "category": "Fintech", "funding_goal": "₹5 Cr"},
    {"owner": "rohan_mehta", "name": "DesignDesk", "status": PitchStatus.IDEA,
     "description": "A marketplace matching startups with vetted freelance designers.",
     "location": "Pune", "category": "Marketplace"},
]

SAMPLE_CONNECTIONS = [
    ("founder", "investor", ConnectionStatus.ACCEPTED),
    ("founder", "priya_patel", ConnectionStatus.ACCEPTED),
    ("priya_patel", "investor", ConnectionStatus.ACCEPTED),
    ("arjun_verma", "founder", ConnectionStatus.PENDING),
    ("kavya_nair", "investor", ConnectionStatus.PENDING),
]


# ==================== Seed Functions ====================

async def seed_users(db: AsyncSession) -> Dict[str, User]:
    """Demo accounts get DEMO_PASSWORD or a random one; sample members always get a random one"""
    users = {}
    for data in DEMO_ACCOUNTS + SAMPLE_MEMBERS:
        demo = data in DEMO_ACCOUNTS
        password = settings.DEMO_PASSWORD if (demo and settings.DEMO_PASSWORD) else generate_random_password()
        user = User(hashed_password=get_password_hash(password), **data)
        db.add(user)
        users[user.username] = user
        if demo and not settings.DEMO_PASSWORD:
            logger.warning(f"[Seed] Demo account '{user.username}' password: {password}")

    await db.flush()

    founder = users["founder"]
    db.add(Experience(user_id=founder.id, title="CEO", company="Demo Startup", start_date="Jan 2023", current=True))

    for user in users.values():
        user.profile_completed = compute_profile_completion(user, 1 if user is founder else 0)
    await db.flush()

    logger.info(f"[Seed] Created {len(users)} users")
    return users


async def seed_posts(db: AsyncSession, users: Dict[str, User]) -> List[Post]:
    now = utcnow()
    posts = []
    for offset, (username, content) in enumerate(SAMPLE_POSTS):
        post = Post(user_id=users[username].id, content=content, created_at=now - timedelta(hours=offset * 5))
        db.add(post)
        posts.append(post)
    await db.flush()
    logger.info(f"[Seed] Created {len(posts)} posts")
    return posts


async def seed_jobs(db: AsyncSession, users: Dict[str, User]) -> List[Job]:
    jobs = []
    for data in SAMPLE_JOBS:
        fields = dict(data)
        owner = users[fields.pop("owner")]
        job = Job(user_id=owner.id, **fields)
        db.add(job)
        jobs.append(job)
    await db.flush()
    logger.info(f"[Seed] Created {len(jobs)} jobs")
    return jobs


async def seed_events(db: AsyncSession, users: Dict[str, User]) -> List[Event]:
    events = []
    for data in SAMPLE_EVENTS:
        fields = dict(data)
        owner = users[fields.pop("owner")]
        event = Event(
            creator_id=owner.id,
            start_date=fields.pop("start"),
            end_date=fields.pop("end"),
            registration_link="https://example.com/register",
            **fields,
        )
        db.add(event)
        events.append(event)
    await db.flush()
    logger.info(f"[Seed] Created {len(events)} events")
    return events


async def seed_articles(db: AsyncSession, users: Dict[str, User]) -> List[Article]:
    articles = []
    for data in SAMPLE_ARTICLES:
        fields = dict(data)
        author = users[fields.pop("author")]
        article = Article(author_id=author.id, is_published=True, **fields)
        db.add(article)
        articles.append(article)
    await db.flush()
    logger.info(f"[Seed] Created {len(articles)} articles")
    return articles


async def seed_pitches(db: AsyncSession, users: Dict[str, User]) -> List[Pitch]:
    pitches = []
    for data in SAMPLE_PITCHES:
        fields = dict(data)
        owner = users[fields.pop("owner")]
        pitch = Pitch(user_id=owner.id, **fields)
        db.add(pitch)
        pitches.append(pitch)
    await db.flush()
    logger.info(f"[Seed] Created {len(pitches)} pitches")
    return pitches


async def seed_connections(db: AsyncSession, users: Dict[str, User]) -> List[Connection]:
    connections = []
    for requester, receiver, status in SAMPLE_CONNECTIONS:
        connection = Connection(
            requester_id=users[requester].id,
            receiver_id=users[receiver].id,
            status=status,
        )
        db.add(connection)
        connections.append(connection)
    await db.flush()
    logger.info(f"[Seed] Created {len(connections)} connections")
    return connections


# ==================== Main Seed Function ====================

async def seed_demo_data(db: AsyncSession) -> bool:
    """
    Seed an empty database. Returns False without touching anything when
    users already exist. The caller commits.
    """
    existing = await db.execute(select(func.count()).select_from(User))
    if existing.scalar():
        logger.info("[Seed] Users already present, skipping demo data")
        return False

    users = await seed_users(db)
    await seed_posts(db, users)
    await seed_jobs(db, users)
    await seed_events(db, users)
    await seed_articles(db, users)
    await seed_pitches(db, users)
    await seed_connections(db, users)

    logger.info("[Seed] Demo data ready")
    return True


async def seed_all():
    """Create tables and seed them"""
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await seed_demo_data(db)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"[Seed] Error seeding database: {e}")
            raise


if __name__ == "__main__":
    asyncio.run(seed_all())
