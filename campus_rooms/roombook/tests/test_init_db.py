from roombook import models
from roombook.init_db import populate_from_csv

HEADER = 'room_id,name,building,floor,type,capacity,equipment,is_active\n'


def test_populate_upserts_and_deactivates(db, tmp_path):
    path = tmp_path / 'rooms.csv'
    path.write_text(HEADER
                    + 'LAB-1,Lab-1,Science Block,1,lab,30,"computers,projector",true\n'
                    + 'SEM-1,Seminar 1,Main,2,auditorium,100,,\n', encoding='utf-8')
    assert populate_from_csv(str(path), db=db) == 2

    sem = db.query(models.Room).filter_by(room_id='SEM-1').one()
    # Unknown types fall back to classroom
    assert sem.type == 'classroom'
    assert sem.is_active

    path.write_text(HEADER + 'LAB-1,Lab One,Science Block,1,lab,40,computers,true\n', encoding='utf-8')
    assert populate_from_csv(str(path), db=db) == 1

    lab = db.query(models.Room).filter_by(room_id='LAB-1').one()
    assert (lab.name, lab.capacity, lab.equipment_tags) == ('Lab One', 40, ['computers'])
    db.refresh(sem)
    assert not sem.is_active
    assert db.query(models.Room).count() == 2


def test_missing_csv(db, tmp_path):
    assert populate_from_csv(str(tmp_path / 'missing.csv'), db=db) == 0
