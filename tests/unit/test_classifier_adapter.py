import asyncio
import unittest

from feed_scanner.classifier.adapter import FrameClassifierAdapter, decide
from feed_scanner.classifier.base import ClassifierInitError
from fakes import FakeClassifier, FakeDriver, FakeElement, female, male


def video(width=720, height=1280):
    return FakeElement("video", props={"videoWidth": width, "videoHeight": height})


class DecideTest(unittest.TestCase):
    def test_threshold_is_inclusive(self):
        result = decide([female(0.7)], "female", 0.7)
        self.assertTrue(result.positive)
        self.assertEqual(result.confidence, 0.7)

    def test_reports_max_target_confidence(self):
        result = decide([female(0.4), male(0.99), female(0.82)], "female", 0.7)
        self.assertTrue(result.positive)
        self.assertEqual(result.confidence, 0.82)

    def test_below_threshold_keeps_confidence(self):
        result = decide([female(0.55)], "female", 0.7)
        self.assertFalse(result.positive)
        self.assertEqual(result.confidence, 0.55)

    def test_no_detections(self):
        result = decide([], "female", 0.7)
        self.assertFalse(result.positive)
        self.assertEqual(result.confidence, 0.0)

    def test_other_categories_ignored(self):
        self.assertFalse(decide([male(0.95)], "female", 0.7).positive)


class AdapterTest(unittest.IsolatedAsyncioTestCase):
    async def test_positive_frame(self):
        driver = FakeDriver()
        classifier = FakeClassifier([female(0.82)])
        adapter = FrameClassifierAdapter(driver, classifier, threshold=0.7)
        result = await adapter.classify(video())
        self.assertTrue(result.positive)
        self.assertAlmostEqual(result.confidence, 0.82)
        self.assertEqual(driver.captures, 1)
        self.assertTrue(adapter.ready)

    async def test_zero_sized_video_skips_classifier(self):
        driver = FakeDriver()
        classifier = FakeClassifier([female(0.99)])
        adapter = FrameClassifierAdapter(driver, classifier)
        for w, h in ((0, 0), (1, 720), (720, 1)):
            result = await adapter.classify(video(w, h))
            self.assertFalse(result.positive)
            self.assertEqual(result.confidence, 0.0)
        self.assertEqual(classifier.detect_calls, 0)
        self.assertEqual(driver.captures, 0)

    async def test_detect_failure_is_negative(self):
        adapter = FrameClassifierAdapter(FakeDriver(), FakeClassifier([female(0.9)], fail_detect=True))
        result = await adapter.classify(video())
        self.assertFalse(result.positive)
        self.assertEqual(result.confidence, 0.0)

    async def test_undecodable_frame_is_negative(self):
        driver = FakeDriver(frame="data:,")
        classifier = FakeClassifier([female(0.9)])
        adapter = FrameClassifierAdapter(driver, classifier)
        result = await adapter.classify(video())
        self.assertFalse(result.positive)
        self.assertEqual(classifier.detect_calls, 0)

    async def test_stale_video_is_negative(self):
        element = video()
        element.stale = True
        adapter = FrameClassifierAdapter(FakeDriver(), FakeClassifier([female(0.9)]))
        result = await adapter.classify(element)
        self.assertFalse(result.positive)

    async def test_concurrent_callers_share_one_initialization(self):
        classifier = FakeClassifier()
        adapter = FrameClassifierAdapter(FakeDriver(), classifier)
        await asyncio.gather(*(adapter.ensure_ready() for _ in range(5)))
        self.assertEqual(classifier.init_calls, 1)
        await adapter.ensure_ready()
        self.assertEqual(classifier.init_calls, 1)

    async def test_failed_initialization_is_retried_later(self):
        classifier = FakeClassifier(fail_init=True)
        adapter = FrameClassifierAdapter(FakeDriver(), classifier)
        with self.assertRaises(ClassifierInitError):
            await adapter.ensure_ready()
        self.assertFalse(adapter.ready)

        classifier.fail_init = False
        await adapter.ensure_ready()
        self.assertTrue(adapter.ready)
        self.assertEqual(classifier.init_calls, 2)

    async def test_unexpected_init_error_is_wrapped(self):
        class Broken(FakeClassifier):
            async def initialize(self):
                raise OSError("download failed")

        adapter = FrameClassifierAdapter(FakeDriver(), Broken())
        with self.assertRaises(ClassifierInitError):
            await adapter.ensure_ready()


if __name__ == "__main__":
    unittest.main()
