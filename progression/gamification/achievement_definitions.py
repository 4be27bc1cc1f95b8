"""
Achievement catalog seed data

Categories:
- milestone: application counts, first interview, first offer
- streak: consecutive days with an application
- goal: weekly / monthly goal completion
- time: applications early, late or on weekends
- quality: notes, attachments, remote roles
- special: FAANG applications, collecting achievements
"""

from progression.models import (
    AchievementCategory as C,
    AchievementDefinition,
    AchievementRarity as R,
    AchievementTier as T,
    all_of,
    at_least,
)
from progression.models import activity as m


def _define(sort_order: int, **fields) -> AchievementDefinition:
    return AchievementDefinition(sort_order=sort_order, **fields)


ACHIEVEMENTS = [
    # Milestones
    _define(
        10, id="first_steps", name="First Steps",
        description="Submit your first job application",
        category=C.MILESTONE, tier=T.BRONZE, rarity=R.COMMON, icon="Target",
        xp_reward=10, requirement=at_least(m.APPLICATION_COUNT, 1),
    ),
    _define(
        20, id="getting_started", name="Getting Started",
        description="Submit 10 job applications",
        category=C.MILESTONE, tier=T.BRONZE, rarity=R.COMMON, icon="Target",
        xp_reward=25, requirement=at_least(m.APPLICATION_COUNT, 10),
    ),
    _define(
        30, id="job_hunter", name="Job Hunter",
        description="Submit 50 job applications",
        category=C.MILESTONE, tier=T.SILVER, rarity=R.UNCOMMON, icon="Target",
        xp_reward=50, requirement=at_least(m.APPLICATION_COUNT, 50),
    ),
    _define(
        40, id="application_master", name="Application Master",
        description="Submit 100 job applications",
        category=C.MILESTONE, tier=T.GOLD, rarity=R.RARE, icon="Target",
        xp_reward=100, requirement=at_least(m.APPLICATION_COUNT, 100),
    ),
    _define(
        50, id="job_search_legend", name="Job Search Legend",
        description="Submit 500 job applications",
        category=C.MILESTONE, tier=T.PLATINUM, rarity=R.EPIC, icon="Target",
        xp_reward=250, requirement=at_least(m.APPLICATION_COUNT, 500),
    ),
    _define(
        60, id="legendary_job_seeker", name="Legendary Job Seeker",
        description="Submit 1000 job applications",
        category=C.MILESTONE, tier=T.DIAMOND, rarity=R.LEGENDARY, icon="Crown",
        xp_reward=1000, requirement=at_least(m.APPLICATION_COUNT, 1000),
    ),
    _define(
        70, id="first_interview", name="First Interview",
        description="Get your first job interview",
        category=C.MILESTONE, tier=T.SILVER, rarity=R.UNCOMMON, icon="Video",
        xp_reward=75, requirement=at_least(m.INTERVIEW_COUNT, 1),
    ),
    _define(
        80, id="first_offer", name="First Offer",
        description="Receive your first job offer",
        category=C.MILESTONE, tier=T.GOLD, rarity=R.RARE, icon="Award",
        xp_reward=150, requirement=at_least(m.OFFER_COUNT, 1),
    ),

    # Streaks
    _define(
        110, id="three_day_streak", name="On a Roll",
        description="Apply on 3 consecutive days",
        category=C.STREAK, tier=T.BRONZE, rarity=R.COMMON, icon="Flame",
        xp_reward=15, requirement=at_least(m.LONGEST_STREAK, 3),
    ),
    _define(
        120, id="week_streak", name="Consistent",
        description="Apply on 7 consecutive days",
        category=C.STREAK, tier=T.SILVER, rarity=R.UNCOMMON, icon="Flame",
        xp_reward=30, requirement=at_least(m.LONGEST_STREAK, 7),
    ),
    _define(
        130, id="month_streak", name="Dedicated",
        description="Apply on 30 consecutive days",
        category=C.STREAK, tier=T.GOLD, rarity=R.RARE, icon="Flame",
        xp_reward=75, requirement=at_least(m.LONGEST_STREAK, 30),
    ),
    _define(
        140, id="hundred_day_streak", name="Streak Legend",
        description="Apply on 100 consecutive days",
        category=C.STREAK, tier=T.DIAMOND, rarity=R.LEGENDARY, icon="Flame",
        xp_reward=500, requirement=at_least(m.LONGEST_STREAK, 100),
    ),

    # Goals
    _define(
        210, id="weekly_goal_achiever", name="Weekly Warrior",
        description="Complete your weekly goal",
        category=C.GOAL, tier=T.BRONZE, rarity=R.COMMON, icon="Award",
        xp_reward=25, requirement=at_least(m.WEEKLY_GOAL_PROGRESS, 100),
    ),
    _define(
        220, id="monthly_goal_achiever", name="Monthly Crusher",
        description="Complete your monthly goal",
        category=C.GOAL, tier=T.SILVER, rarity=R.UNCOMMON, icon="Award",
        xp_reward=50, requirement=at_least(m.MONTHLY_GOAL_PROGRESS, 100),
    ),
    _define(
        230, id="goal_overachiever", name="Overachiever",
        description="Exceed your weekly goal by 50%",
        category=C.GOAL, tier=T.GOLD, rarity=R.RARE, icon="TrendingUp",
        xp_reward=75, requirement=at_least(m.WEEKLY_GOAL_PROGRESS, 150),
    ),

    # Time
    _define(
        310, id="early_bird", name="Early Bird",
        description="Submit an application before 9 AM",
        category=C.TIME, tier=T.BRONZE, rarity=R.COMMON, icon="Sunrise",
        xp_reward=10, requirement=at_least(m.EARLY_APPLICATION_COUNT, 1),
    ),
    _define(
        320, id="night_owl", name="Night Owl",
        description="Submit an application after 8 PM",
        category=C.TIME, tier=T.BRONZE, rarity=R.COMMON, icon="Moon",
        xp_reward=10, requirement=at_least(m.LATE_APPLICATION_COUNT, 1),
    ),
    _define(
        330, id="weekend_warrior", name="Weekend Warrior",
        description="Submit an application on the weekend",
        category=C.TIME, tier=T.SILVER, rarity=R.UNCOMMON, icon="Calendar",
        xp_reward=15, requirement=at_least(m.WEEKEND_APPLICATION_COUNT, 1),
    ),

    # Quality
    _define(
        410, id="cover_letter_pro", name="Cover Letter Pro",
        description="Upload cover letter attachments to 10 applications",
        category=C.QUALITY, tier=T.SILVER, rarity=R.UNCOMMON, icon="FileText",
        xp_reward=30, requirement=at_least(m.COVER_LETTER_COUNT, 10),
    ),
    _define(
        420, id="resume_optimizer", name="Resume Optimizer",
        description="Upload resume attachments to 10 applications",
        category=C.QUALITY, tier=T.GOLD, rarity=R.RARE, icon="FileEdit",
        xp_reward=40, requirement=at_least(m.RESUME_COUNT, 10),
    ),
    _define(
        430, id="remote_seeker", name="Remote Seeker",
        description="Apply to 10 remote positions",
        category=C.QUALITY, tier=T.SILVER, rarity=R.UNCOMMON, icon="Home",
        xp_reward=25, requirement=at_least(m.REMOTE_COUNT, 10),
    ),
    _define(
        440, id="note_taker", name="Note Taker",
        description="Add notes to 10 applications",
        category=C.QUALITY, tier=T.BRONZE, rarity=R.COMMON, icon="FileText",
        xp_reward=30, requirement=at_least(m.NOTES_COUNT, 10),
    ),
    _define(
        450, id="well_prepared", name="Well Prepared",
        description="Attach documents to and take notes on 25 applications",
        category=C.QUALITY, tier=T.GOLD, rarity=R.RARE, icon="FolderCheck",
        xp_reward=60,
        requirement=all_of(
            at_least(m.ATTACHMENTS_COUNT, 25),
            at_least(m.NOTES_COUNT, 25),
        ),
    ),

    # Special
    _define(
        510, id="faang_hunter", name="FAANG Hunter",
        description="Apply to 5 FAANG companies",
        category=C.SPECIAL, tier=T.GOLD, rarity=R.RARE, icon="Building2",
        xp_reward=100, requirement=at_least(m.FAANG_COUNT, 5),
    ),
    _define(
        520, id="achievement_collector", name="Achievement Collector",
        description="Unlock 5 achievements",
        category=C.SPECIAL, tier=T.PLATINUM, rarity=R.EPIC, icon="Trophy",
        xp_reward=150, requirement=at_least(m.ACHIEVEMENTS_UNLOCKED, 5),
    ),
]
