import argparse


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(prog="webpmux", description="WebP container inspection tool")
    parser.add_argument("-p", "--parse", action='store_true', help="Parse mode: print the chunk tree of each file")
    parser.add_argument("-i", "--input", type=str, required=True, help='WebP file or directory containing WebP files')
    parser.add_argument("-o", "--output", type=str, default=".", help='Output directory')
    parser.add_argument("-e", "--export", type=str, choices=['csv', 'json'], help='Export parsed data to CSV or JSON')
    parser.add_argument("-d", "--decode", action='store_true', help="Decode pictures and report their decoded size")
    parser.add_argument("-r", "--repack", action='store_true', help="Write each parsed file back out to the output directory")
    parser.add_argument("-v", "--verbose", action='store_true', help="Enable debug logging")
    return parser.parse_args(argv)
