REDIS_META_KEY = "room:meta:{slug}" # room id - room hash
REDIS_ROOMS_INDEX = "rooms:index" # sorted set of room ids scored by creation time
REDIS_MESSAGES_KEY = "room:messages:{slug}" # room id - list of message ids in creation order
REDIS_MESSAGE_KEY = "message:{message_id}" # message id - message hash

# **Example `room:meta:{id}` hash fields**
# - `id` = `{roomId}`
# - `theme` = free text
# - `created_at` = ISO timestamp

# **Example `message:{id}` hash fields**
# - `id`, `room_id`, `content`, `created_at`
# - `reaction_count` = integer, never below 0
# - `answered` = "0" / "1"
