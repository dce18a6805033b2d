from tortoise import BaseDBAsyncClient


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "users" (
    "id" CHAR(36) NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "modified_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "email" VARCHAR(255) NOT NULL UNIQUE,
    "name" VARCHAR(255),
    "password_hash" VARCHAR(255) NOT NULL
);
CREATE INDEX IF NOT EXISTS "idx_users_email_133a6f" ON "users" ("email");
CREATE INDEX IF NOT EXISTS "idx_users_created_5b6d1e" ON "users" ("created_at");
CREATE TABLE IF NOT EXISTS "sessions" (
    "id" CHAR(36) NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "modified_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "token" VARCHAR(255) NOT NULL UNIQUE,
    "revoked" INT NOT NULL DEFAULT 0,
    "expires_at" TIMESTAMP,
    "user_id" CHAR(36) NOT NULL REFERENCES "users" ("id") ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS "idx_sessions_created_0f3c2a" ON "sessions" ("created_at");
CREATE TABLE IF NOT EXISTS "images" (
    "id" CHAR(36) NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "modified_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "owner_id" CHAR(36) NOT NULL,
    "original_prompt" TEXT NOT NULL,
    "enhanced_prompt" TEXT NOT NULL,
    "image_filename" VARCHAR(255) NOT NULL,
    "content_type" VARCHAR(100) NOT NULL DEFAULT 'image/png',
    "thumbs_up" INT NOT NULL DEFAULT 0,
    "thumbs_down" INT NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS "idx_images_created_8a1d4b" ON "images" ("created_at");
CREATE INDEX IF NOT EXISTS "idx_images_owner_i_2c9e71" ON "images" ("owner_id");
CREATE TABLE IF NOT EXISTS "ratings" (
    "id" CHAR(36) NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "modified_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "user_id" CHAR(36) NOT NULL,
    "rating_type" VARCHAR(16) NOT NULL /* THUMBS_UP: thumbs_up\nTHUMBS_DOWN: thumbs_down */,
    "image_id" CHAR(36) NOT NULL REFERENCES "images" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_ratings_image_i_5f0b8d" UNIQUE ("image_id", "user_id")
);
CREATE INDEX IF NOT EXISTS "idx_ratings_created_71c2e0" ON "ratings" ("created_at");
CREATE INDEX IF NOT EXISTS "idx_ratings_user_id_e43a9b" ON "ratings" ("user_id");
CREATE TABLE IF NOT EXISTS "favorites" (
    "id" CHAR(36) NOT NULL PRIMARY KEY,
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "modified_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "user_id" CHAR(36) NOT NULL,
    "image_id" CHAR(36) NOT NULL REFERENCES "images" ("id") ON DELETE CASCADE,
    CONSTRAINT "uid_favorites_user_id_a8d3f6" UNIQUE ("user_id", "image_id")
);
CREATE INDEX IF NOT EXISTS "idx_favorites_created_3b7e15" ON "favorites" ("created_at");
CREATE INDEX IF NOT EXISTS "idx_favorites_user_id_9d0c42" ON "favorites" ("user_id");
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSON NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        """
