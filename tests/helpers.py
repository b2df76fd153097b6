from pixel_buffer import PixelBuffer


def solid(rgba, width=1, height=1):
    return PixelBuffer.filled(width, height, rgba)
