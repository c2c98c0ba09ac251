"""
SkillBridge Marketplace
Jobs, projects and mentorship for students, mentors and employers.

Architecture:
- PostgreSQL: Users, profiles, projects, jobs, applications, sessions, skills
- MongoDB: Activity feed documents
"""

__version__ = "1.0.0"
