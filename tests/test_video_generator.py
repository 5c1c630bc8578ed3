import json

from taswira.services.prompt_generator import PromptGenerator
from taswira.services.video_generator import VideoGenerator

from tests.fakes import FakeChatClient, FakeKie


class FakeCombiner:
    def __init__(self):
        self.calls = []

    async def combine(self, video_urls):
        self.calls.append(video_urls)
        return {
            "success": True,
            "video_url": "https://cdn.test/final.mp4",
            "playlist": None,
            "fallback": False,
            "total_duration": 8 * len(video_urls),
            "message": "Videos combined",
            "error": None
        }


def make_scenes():
    return [
        {
            "referenceImage": index >= 2,
            "person": {"name": "Ava", "line": f"line {index}"},
            "place": {"description": f"place {index}"},
            "additionalInstructions": {"cameraMovement": "dolly"},
        }
        for index in range(5)
    ]


def make_generator(kie, chat_responses):
    prompts = PromptGenerator(client=FakeChatClient(chat_responses))
    combiner = FakeCombiner()
    generator = VideoGenerator(kie_client=kie, prompt_generator=prompts, combiner=combiner, poll_interval=0)
    return generator, combiner


async def test_animate_image():
    kie = FakeKie()
    generator, _ = make_generator(kie, ['{"prompt": "Slow orbit"}'])

    result = await generator.animate_image("http://testserver/media/still.png")

    assert result["success"] is True
    assert result["motion_prompt"] == "Slow orbit"
    assert result["video_url"] == "https://cdn.test/runway-1.mp4"
    assert kie.created[0]["image_url"] == "http://testserver/media/still.png"


async def test_animate_image_task_failure():
    kie = FakeKie(outcomes={"runway-1": {"state": "timeout", "result_url": None, "error": "Timed out"}})
    generator, _ = make_generator(kie, ['{"prompt": "Slow orbit"}'])

    result = await generator.animate_image("http://testserver/media/still.png")

    assert result["success"] is False
    assert result["state"] == "timeout"
    assert result["error"] == "Timed out"


async def test_animate_image_needs_url():
    generator, _ = make_generator(FakeKie(), [])
    assert (await generator.animate_image(""))["error"] == "Image URL is required"


async def test_campaign_runs_all_scenes():
    kie = FakeKie()
    generator, combiner = make_generator(kie, [json.dumps(make_scenes())])

    result = await generator.generate_campaign(
        {"productName": "Sand Mug"}, reference_image_url="http://testserver/media/still.png"
    )

    assert result["success"] is True
    assert len(result["scenes"]) == 5
    assert len(kie.created) == 5
    references = [task["image_urls"] for task in kie.created]
    assert references[:2] == [None, None]
    assert references[2:] == [["http://testserver/media/still.png"]] * 3
    assert combiner.calls == [result["video_urls"]]
    assert result["combined"]["video_url"] == "https://cdn.test/final.mp4"


async def test_campaign_keeps_successful_scenes():
    scenes = make_scenes()
    kie = FakeKie(outcomes={"veo-2": {"state": "error", "result_url": None, "error": "policy"}})
    rejected = {k: v for k, v in scenes[4].items() if k != "referenceImage"}
    rejected["sceneDurationSeconds"] = 8
    kie.fail_prompts.add(json.dumps(rejected, ensure_ascii=False))
    generator, combiner = make_generator(kie, [json.dumps(scenes)])

    result = await generator.generate_campaign({"productName": "Sand Mug"})

    states = [scene["state"] for scene in result["scenes"]]
    assert states.count("success") == 3
    assert states.count("error") == 2
    assert len(combiner.calls[0]) == 3
    assert result["success"] is True


async def test_campaign_all_scenes_failed():
    kie = FakeKie(outcomes={
        f"veo-{i}": {"state": "error", "result_url": None, "error": "policy"} for i in range(1, 6)
    })
    generator, combiner = make_generator(kie, [json.dumps(make_scenes())])

    result = await generator.generate_campaign({"productName": "Sand Mug"})

    assert result["success"] is False
    assert result["error"] == "All scene generations failed"
    assert combiner.calls == []


async def test_campaign_prompt_failure():
    generator, _ = make_generator(FakeKie(), ["not json"])

    result = await generator.generate_campaign({"productName": "Sand Mug"})

    assert result["success"] is False
    assert result["scenes"] == []
