import sys
import os
import cv2
import numpy as np
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from core.errors import ImageDecodeError
from visual.compare_images import ImageComparator

def png(pixels):
    ok, buf = cv2.imencode('.png', pixels)
    assert ok
    return buf.tobytes()

def solid(height, width, bgr=(255, 255, 255)):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :] = bgr
    return image

def test_identical_images():
    data = png(solid(10, 10))
    result = ImageComparator().compare(data, data)
    assert result.mismatch_percentage == 0.0

def test_changed_block_percentage():
    reference = solid(10, 10)
    candidate = solid(10, 10)
    candidate[0:5, 0:5] = (0, 0, 0)
    result = ImageComparator().compare(png(candidate), png(reference), ignore_antialiasing=False)
    assert result.mismatch_percentage == 25.0

def test_small_color_shift_within_antialiasing_tolerance():
    reference = solid(10, 10, (100, 100, 100))
    candidate = solid(10, 10, (120, 120, 120))
    comparator = ImageComparator()
    assert comparator.compare(png(candidate), png(reference), ignore_antialiasing=True).mismatch_percentage == 0.0
    assert comparator.compare(png(candidate), png(reference), ignore_antialiasing=False).mismatch_percentage == 100.0

def test_antialiased_edge_ignored():
    # Black/white edge in both images, candidate edge pixel slightly darker
    reference = solid(3, 3)
    reference[:, 0] = (0, 0, 0)
    candidate = reference.copy()
    candidate[1, 1] = (200, 200, 200)
    result = ImageComparator().compare(png(candidate), png(reference), ignore_antialiasing=True)
    assert result.mismatch_percentage == 0.0

def test_different_dimensions_count_as_mismatch():
    result = ImageComparator().compare(png(solid(10, 20)), png(solid(10, 10)))
    assert result.mismatch_percentage == 50.0
    assert result.get_diff_image().size == (20, 10)

def test_diff_image_highlights_mismatch():
    reference = solid(4, 4)
    candidate = solid(4, 4)
    candidate[0, 0] = (0, 0, 0)
    result = ImageComparator().compare(png(candidate), png(reference), ignore_antialiasing=False)
    diff = result.get_diff_image()
    assert diff.size == (4, 4)
    assert diff.getpixel((0, 0)) == (255, 0, 255)
    assert diff.getpixel((3, 3)) != (255, 0, 255)
    assert result.get_diff_image() is diff

def test_percentage_rounded_to_two_decimals():
    reference = solid(3, 1)
    candidate = solid(3, 1)
    candidate[0, 0] = (0, 0, 0)
    result = ImageComparator().compare(png(candidate), png(reference), ignore_antialiasing=False)
    assert result.mismatch_percentage == 33.33

def test_alpha_and_grayscale_inputs():
    gray = np.full((5, 5), 255, dtype=np.uint8)
    bgra = np.full((5, 5, 4), 255, dtype=np.uint8)
    result = ImageComparator().compare(png(gray), png(bgra))
    assert result.mismatch_percentage == 0.0

@pytest.mark.parametrize('data', [b'', b'not an image'])
def test_undecodable_input(data):
    with pytest.raises(ImageDecodeError):
        ImageComparator().compare(data, png(solid(2, 2)))
