import csv, random, argparse, os

# building -> (floors, classrooms per floor)
BUILDINGS = {
    'UB': (15, 20),
    'TP': (15, 8),
    'TP2': (12, 20),
}

EQUIPMENT = {
    'classroom': ['projector', 'whiteboard'],
    'lab': ['computers', 'projector', 'wifi'],
    'seminar_hall': ['projector', 'microphone', 'wifi'],
    'meeting_room': ['display', 'whiteboard', 'wifi'],
}

HEADER = ['room_id', 'name', 'building', 'floor', 'type', 'capacity', 'equipment', 'is_active']


def room_row(building, floor, num, room_type, capacity, active=True):
    room_id = f"{building}-{floor:02d}{num:02d}"
    label = {'classroom': 'Room', 'lab': 'Lab', 'seminar_hall': 'Seminar Hall', 'meeting_room': 'Meeting Room'}[room_type]
    return [room_id, f"{building} {label} {floor:02d}{num:02d}", building, floor, room_type,
            capacity, ','.join(EQUIPMENT[room_type]), 'true' if active else 'false']


def write_structured(out_rooms='roombook/rooms.csv', seed=1):
    rng = random.Random(seed)
    if os.path.dirname(out_rooms):
        os.makedirs(os.path.dirname(out_rooms), exist_ok=True)

    rows = []
    for building, (floors, per_floor) in BUILDINGS.items():
        for floor in range(1, floors + 1):
            for num in range(1, per_floor + 1):
                rows.append(room_row(building, floor, num, 'classroom', 60))
            # one lab and one meeting room on every third floor
            if floor % 3 == 0:
                rows.append(room_row(building, floor, per_floor + 1, 'lab', rng.choice([24, 30, 40])))
                rows.append(room_row(building, floor, per_floor + 2, 'meeting_room', rng.choice([6, 8, 12])))
    # seminar halls on the TP2 seventh floor; one closed for renovation
    for idx, cap in enumerate([120, 120, 110, 100], start=1):
        rows.append(room_row('TP2', 7, 30 + idx, 'seminar_hall', cap, active=idx != 4))

    with open(out_rooms, 'w', newline='', encoding='utf-8') as f:
        w = csv.writer(f)
        w.writerow(HEADER)
        w.writerows(rows)
    return len(rows)


if __name__ == '__main__':
    p = argparse.ArgumentParser()
    p.add_argument('--out', default='roombook/rooms.csv')
    p.add_argument('--seed', type=int, default=1)
    args = p.parse_args()
    n = write_structured(args.out, seed=args.seed)
    print(f'Wrote {n} rooms to {args.out}')
