import datetime as dt
import uuid

from collage.models.image import Image

BASE_TIME = dt.datetime(2025, 3, 1, 12, 0, 0, tzinfo=dt.timezone.utc)


async def make_image(owner_id, minutes=0, thumbs_up=0, thumbs_down=0, prompt="a park"):
    image_id = uuid.uuid4()
    return await Image.create(
        id=image_id,
        owner_id=owner_id,
        original_prompt=prompt,
        enhanced_prompt=f"A detailed sketch of {prompt}",
        image_filename=f"{image_id}.png",
        thumbs_up=thumbs_up,
        thumbs_down=thumbs_down,
        created_at=BASE_TIME + dt.timedelta(minutes=minutes),
    )
