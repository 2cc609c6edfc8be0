"""Global constants for the rendezvous application."""

# Top-level collections
USERS_COLLECTION = "users"
EVENTS_COLLECTION = "events"
NOTIFICATIONS_COLLECTION = "notifications"

# Sub-collections under users/{userId}
FRIENDS_SUBCOLLECTION = "friends"
FRIEND_REQUESTS_SUBCOLLECTION = "friendRequests"
SENT_REQUESTS_SUBCOLLECTION = "sentRequests"
USER_INVITATIONS_SUBCOLLECTION = "invitations"
JOINED_EVENTS_SUBCOLLECTION = "joinedEvents"

# Sub-collections under events/{eventUid}
PARTICIPANTS_SUBCOLLECTION = "participants"
INVITATIONS_SUBCOLLECTION = "invitations"
POLLS_SUBCOLLECTION = "polls"

# Sub-collection under events/{eventUid}/polls/{pollUid}
VOTES_SUBCOLLECTION = "votes"

# Transactions
DEFAULT_TRANSACTION_MAX_ATTEMPTS = 5

# Polls
MIN_POLL_OPTIONS = 2

# Event types
EVENT_TYPE_PRIVATE = "private"
EVENT_TYPE_PUBLIC = "public"

# Notification types
NOTIFICATION_FRIEND_REQUEST = "FRIEND_REQUEST"

# Firestore allows at most this many writes in one batch
BATCH_WRITE_LIMIT = 500

# User documents fetched per round trip when aggregating statistics
USER_FETCH_CHUNK_SIZE = 30
