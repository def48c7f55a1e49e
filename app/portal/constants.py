"""
Central constants for the feedback portal.
"""
from __future__ import annotations

# Feedback lifecycle
STATUS_PENDING = "pending"
STATUS_REVIEWING = "reviewing"
STATUS_RESOLVED = "resolved"
STATUS_REJECTED = "rejected"

VALID_STATUSES = (STATUS_PENDING, STATUS_REVIEWING, STATUS_RESOLVED, STATUS_REJECTED)

# Higher sorts first under "priority" ordering
STATUS_PRIORITY = {
    STATUS_PENDING: 3,
    STATUS_REVIEWING: 2,
    STATUS_RESOLVED: 1,
    STATUS_REJECTED: 0,
}

SORT_OPTIONS = ("newest", "oldest", "priority")

LANGUAGES = ("en", "sw")

# Badge label + public description shown on the tracking page
STATUS_INFO = {
    "en": {
        STATUS_PENDING: ("Pending", "Your feedback has been received and is awaiting review by our team."),
        STATUS_REVIEWING: ("Reviewing", "Our team is currently reviewing your feedback and working on it."),
        STATUS_RESOLVED: ("Resolved", "Your feedback has been addressed and resolved by our team."),
        STATUS_REJECTED: ("Rejected", "Your feedback could not be processed or was outside our scope of service."),
    },
    "sw": {
        STATUS_PENDING: ("Inasubiri", "Maoni yako yamepokelewa na yanasubiri kukaguliwa na timu yetu."),
        STATUS_REVIEWING: ("Inakaguliwa", "Timu yetu inakagua maoni yako na kuyafanyia kazi."),
        STATUS_RESOLVED: ("Imetatuliwa", "Maoni yako yameshughulikiwa na kutatuliwa na timu yetu."),
        STATUS_REJECTED: ("Imekataliwa", "Maoni yako hayakuweza kushughulikiwa au yalikuwa nje ya wigo wa huduma zetu."),
    },
}

# Message delivered to the submitter when a moderator changes the status
STATUS_CHANGE_MESSAGES = {
    STATUS_PENDING: "Your feedback has been placed in pending status.",
    STATUS_REVIEWING: "Your feedback is now being reviewed by a moderator.",
    STATUS_RESOLVED: "Your feedback has been resolved. Thank you for your contribution!",
    STATUS_REJECTED: "Your feedback has been rejected. Please contact us for more information.",
}

# Evidence uploads
EVIDENCE_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})
EVIDENCE_CONTENT_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})

TRACKING_ID_LENGTH = 8
TRACKING_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Roles, highest precedence first
ROLE_ADMIN = "admin"
ROLE_MODERATOR = "moderator"
ROLE_USER = "user"
ROLE_PRECEDENCE = (ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER)

ROLE_NAMES = {
    ROLE_ADMIN: "Administrator",
    ROLE_MODERATOR: "Moderator",
    ROLE_USER: "Citizen",
}

PERMISSIONS = {
    "account.view": "Account: view own dashboard",
    "feedback.moderate": "Feedback: view scoped list, change status, respond",
    "admin.view": "Admin: view dashboard",
    "users.manage": "Users: create, change role, ban, reset password",
    "moderators.assign": "Moderators: assign location scope",
    "audit.view": "Audit trail: view",
}

ROLE_PERMISSIONS = {
    ROLE_USER: ("account.view",),
    ROLE_MODERATOR: ("account.view", "feedback.moderate"),
    ROLE_ADMIN: tuple(PERMISSIONS.keys()),
}

# Government feedback categories (id, name, description, icon)
DEFAULT_CATEGORIES = (
    ("water", "Water & Irrigation", "Issues related to water access, quality, and irrigation infrastructure.", "droplet"),
    ("electricity", "Energy Sector", "Power outages, energy access, and related infrastructure issues.", "zap"),
    ("transport", "Transportation Infrastructure", "Road conditions, bridges, public transport, and traffic management.", "truck"),
    ("healthcare", "Health", "Access to healthcare services, facilities, and public health concerns.", "heart-pulse"),
    ("education", "Education & Training", "Schools, universities, educational resources, and teaching quality.", "graduation-cap"),
    ("environment", "Environment Sector", "Pollution, waste management, conservation, and climate change.", "leaf"),
    ("security", "Defense & Security", "Law enforcement, fire services, emergency response, and national security.", "shield"),
    ("lands", "Land Sector", "Land rights, planning, surveying, and land management.", "map"),
    ("finance", "Finance Sector", "Government financial services, taxation, and economic policies.", "banknote"),
    ("social", "Community Development", "Social welfare, community services, and support for vulnerable groups.", "users"),
    ("trade", "Trade Assessment Committee", "Evaluation and regulation of trade practices and policies.", "scale"),
    ("foreign", "Foreign Affairs", "International relations, embassy services, and diplomatic matters.", "globe"),
    ("judiciary", "Judiciary", "Court services, legal matters, and judicial processes.", "gavel"),
    ("home", "Home Affairs", "Immigration, citizenship, and domestic governance matters.", "home"),
    ("governance", "Governance & Leadership", "Public administration, leadership, and governance practices.", "landmark"),
    ("fisheries", "Life & Fisheries", "Fishing industry, aquatic resources, and livelihood matters.", "fish"),
    ("labor", "Labor & Employment", "Employment rights, labor standards, and workplace conditions.", "briefcase"),
    ("mining", "Mining Sector", "Mining operations, mineral rights, and industry regulations.", "pickaxe"),
    ("tourism", "Natural Resources & Tourism", "Tourism industry, natural resources management, and conservation.", "mountain"),
)
