import os
import sys
import logging
from datetime import datetime

from webpmux.cli.cli_parser import parse_arguments
from webpmux.exceptions import CodecError, WebPError
from webpmux.export.export_to_csv import export_to_csv
from webpmux.export.export_to_json import export_to_json
from webpmux.parsers.chunks import ALPHChunk, BitstreamChunk
from webpmux.parsers.codecs.codec import PillowCodec
from webpmux.parsers.codecs.image.bitstream_header import probe_bitstream
from webpmux.parsers.images.webp_parser import demux
from webpmux.parsers.images.webp_writer import write
from webpmux.utils.file_utils import find_webp_files


def _describe_chunk(chunk):
    info = chunk.to_dict()
    if isinstance(chunk, (BitstreamChunk, ALPHChunk)):
        try:
            info['header'] = probe_bitstream(chunk).to_dict()
        except CodecError as exc:
            info['header'] = {'error': str(exc)}
    if 'sub_chunks' in info:
        info['sub_chunks'] = [_describe_chunk(sub) for sub in chunk.sub_chunks]
    return info


def describe_image(image):
    info = image.to_dict()
    info['chunks'] = [_describe_chunk(chunk) for chunk in image.chunks]
    return info


def print_tree(info, indent=1):
    for chunk in info['chunks'] if 'chunks' in info else info['sub_chunks']:
        print(f"{'  ' * indent}{chunk['tag']!r:8} payload={chunk['payload_size']:<10} full={chunk['full_size']}")
        if chunk.get('sub_chunks'):
            print_tree(chunk, indent + 1)


def main(argv=None):
    args = parse_arguments(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    codec = PillowCodec() if args.decode else None

    now = datetime.now()
    print(f"[{now.strftime('%Y-%m-%d-%H.%M.%S')}] Start analyzing.")

    all_parsed_data = []
    failures = 0
    for image_file in find_webp_files(args.input):
        print(f"Parsing image file: {image_file}")
        try:
            with open(image_file, 'rb') as f:
                image = demux(f)
        except WebPError as exc:
            print(f"[Error] {image_file}: {exc}")
            all_parsed_data.append({'file_path': image_file, 'error': str(exc)})
            failures += 1
            continue

        data = {'file_path': image_file, 'image_data': describe_image(image)}
        if args.parse:
            print_tree(data['image_data'])

        if codec is not None:
            try:
                pixels, width, height = codec.decode_image(image)
                data['decoded'] = {'width': width, 'height': height, 'size': len(pixels)}
                print(f"  decoded {width}x{height}")
            except CodecError as exc:
                print(f"[Decode Error] {image_file}: {exc}")
                data['decoded'] = {'error': str(exc)}
                failures += 1

        if args.repack:
            os.makedirs(args.output, exist_ok=True)
            output_file = os.path.join(args.output, os.path.basename(image_file))
            if os.path.abspath(output_file) == os.path.abspath(image_file):
                print(f"[Skip] refusing to overwrite input file {image_file}")
            else:
                with open(output_file, 'wb') as f:
                    write(image, f)
                print(f"  repacked to {output_file}")

        all_parsed_data.append(data)

    if args.export:
        os.makedirs(args.output, exist_ok=True)
        output_file = os.path.join(args.output, f"{now.strftime('%Y-%m-%d-%H.%M.%S')}-output.{args.export}")
        if args.export == 'csv':
            export_to_csv(all_parsed_data, output_file)
        elif args.export == 'json':
            export_to_json(all_parsed_data, output_file)
        print(f"Exported data to {output_file}")

    end = datetime.now()
    print(f"[{end.strftime('%Y-%m-%d-%H.%M.%S')}] Finished.")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
