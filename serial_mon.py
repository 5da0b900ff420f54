import argparse
import sys

import serial

PORT = '/dev/ttyACM0'
BAUD = 115200


def monitor(port=PORT, baud=BAUD):
    with serial.Serial(port, baud, timeout=0.5) as ser:
        print(f"Monitoring {port}...", flush=True)
        while True:
            line = ser.readline()
            if line:
                print(line.decode('utf-8', errors='replace').strip(), flush=True)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Print the device's serial log.")
    parser.add_argument('--port', default=PORT)
    parser.add_argument('--baud', type=int, default=BAUD)
    args = parser.parse_args(argv)

    try:
        monitor(args.port, args.baud)
    except KeyboardInterrupt:
        print("\nStopped.", flush=True)
    except serial.SerialException as e:
        print(f"Error: {e}", flush=True)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
