import os
import logging
from flask import Flask, request, jsonify, send_file
from werkzeug.utils import secure_filename
from config import Config
from models import ExamDetails, HallConfig, SeatRef
from roster_store import RosterStore
from hall_store import HallStore
from orchestrator import ClassDrop, SeatDrop, SeatingOrchestrator
from excel_handler import ExcelHandler

# Set up logging
logging.basicConfig(level=getattr(logging, str(Config.LOG_LEVEL).upper(), logging.DEBUG))

app = Flask(__name__)
app.config.from_object(Config)
app.secret_key = app.config['SECRET_KEY']

# Ensure directories exist
os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
os.makedirs(app.config['EXPORT_FOLDER'], exist_ok=True)

excel_handler = ExcelHandler(app.config['EXPORT_FOLDER'])


def init_session():
    """Fresh in-memory seating session: empty roster, no halls."""
    roster = RosterStore()
    halls = HallStore(roster, max_capacity=app.config['MAX_DESK_CAPACITY'])
    app.config['SEATING'] = SeatingOrchestrator(roster, halls)


def seating() -> SeatingOrchestrator:
    if 'SEATING' not in app.config:
        init_session()
    return app.config['SEATING']


def exam_details_config() -> ExamDetails:
    if 'EXAM_DETAILS' not in app.config:
        app.config['EXAM_DETAILS'] = ExamDetails(
            college_name=app.config['COLLEGE_NAME'],
            department=app.config['DEPARTMENT_NAME'],
            exam_date=app.config['EXAM_DATE'],
        )
    return app.config['EXAM_DETAILS']


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in app.config['ALLOWED_EXTENSIONS']


def error(message, code=400):
    return jsonify({'status': 'error', 'message': message}), code


def pending_decision(action):
    """409 response while a middle seat decision is open, else None."""
    rejected = seating().reject_if_pending(action)
    if rejected is not None:
        return jsonify(rejected.to_dict()), 409
    return None


def hall_config_from_form(defaults: HallConfig) -> HallConfig:
    """Read hall fields from the request, falling back to defaults."""
    return HallConfig(
        name=request.form.get('name', defaults.name).strip(),
        rows=int(request.form.get('rows', defaults.rows)),
        cols=int(request.form.get('cols', defaults.cols)),
        capacity=int(request.form.get('capacity', defaults.capacity)),
    )


def seat_ref_from_form(prefix: str) -> SeatRef:
    return SeatRef(
        hall_id=request.form.get(f'{prefix}_hall_id', '').strip(),
        desk_id=request.form.get(f'{prefix}_desk_id', '').strip(),
        seat_index=int(request.form.get(f'{prefix}_seat_index', -1)),
    )


@app.route('/')
@app.route('/get_seating_status')
def get_seating_status():
    """Halls, classes, pending decision and validation report"""
    return jsonify(seating().status())


@app.route('/upload_classes', methods=['POST'])
def upload_classes():
    try:
        if 'file' not in request.files:
            return error('No file selected')

        file = request.files['file']
        if file.filename == '':
            return error('No file selected')

        if not (file and file.filename and allowed_file(file.filename)):
            return error('Invalid file type. Please upload an Excel file (.xlsx or .xls)')

        filename = secure_filename(file.filename)
        filepath = os.path.join(app.config['UPLOAD_FOLDER'], filename)
        file.save(filepath)

        classes = excel_handler.read_class_data(filepath)
        if classes is None:
            return error('Error processing Excel file. Please check the format.')

        # A new roster invalidates every seat already assigned
        init_session()
        seating().roster.load(classes)
        total = sum(len(c.students) for c in classes)
        return jsonify({
            'status': 'success',
            'message': f'Successfully uploaded {len(classes)} classes ({total} students)',
            'classes': [c.to_dict() for c in classes],
        })

    except Exception as e:
        logging.error(f"Error uploading file: {str(e)}")
        return error(f'Error uploading file: {str(e)}', 500)


@app.route('/get_classes_data')
def get_classes_data():
    return jsonify([c.to_dict() for c in seating().roster.classes])


@app.route('/add_student', methods=['POST'])
def add_student():
    blocked = pending_decision('add_student')
    if blocked:
        return blocked
    class_name = request.form.get('class_name', '').strip()
    register_number = request.form.get('register_number', '').strip()
    if not class_name or not register_number:
        return error('Class and register number are required')
    seated = [s for hall in seating().halls.halls for s in hall.seated_students()]
    if not seating().roster.add_student(class_name, register_number, seated):
        return error('Class not found or register number already listed or seated')
    return jsonify({'status': 'success', 'message': 'Student added successfully'})


@app.route('/delete_student', methods=['POST'])
def delete_student():
    blocked = pending_decision('delete_student')
    if blocked:
        return blocked
    class_name = request.form.get('class_name', '').strip()
    register_number = request.form.get('register_number', '').strip()
    if not seating().roster.remove_student(class_name, register_number):
        return error('Student not found', 404)
    return jsonify({'status': 'success', 'message': 'Student deleted successfully'})


@app.route('/get_halls_data')
def get_halls_data():
    return jsonify([h.to_dict() for h in seating().halls.halls])


@app.route('/add_hall', methods=['POST'])
def add_hall():
    try:
        store = seating().halls
        defaults = store.last_config or HallConfig(
            app.config['DEFAULT_HALL_NAME'],
            app.config['DEFAULT_HALL_ROWS'],
            app.config['DEFAULT_HALL_COLS'],
            app.config['DEFAULT_DESK_CAPACITY'],
        )
        config = hall_config_from_form(defaults)
        problems = store.validate(config)
        if problems:
            return error('Invalid hall configuration: ' + '; '.join(problems))

        hall = store.create_hall(config)
        return jsonify({
            'status': 'success',
            'message': f'Hall added with {hall.rows}×{hall.cols} desks (Total: {hall.total_seats} seats)',
            'hall': hall.to_dict(),
        })

    except ValueError:
        return error('Invalid number format for rows, columns, or capacity')
    except Exception as e:
        logging.error(f"Error adding hall: {str(e)}")
        return error(f'Error adding hall: {str(e)}', 500)


@app.route('/update_hall', methods=['POST'])
def update_hall():
    """Rename or resize a hall; seated students go back to their classes"""
    blocked = pending_decision('update_hall')
    if blocked:
        return blocked
    try:
        hall_id = request.form.get('hall_id', '').strip()
        store = seating().halls
        hall = store.get(hall_id)
        if hall is None:
            return error('Hall not found', 404)

        config = hall_config_from_form(hall.config())
        problems = store.validate(config)
        if problems:
            return error('Invalid hall configuration: ' + '; '.join(problems))

        updated = store.update_hall(hall_id, config)
        return jsonify({'status': 'success', 'message': 'Hall updated successfully', 'hall': updated.to_dict()})

    except ValueError:
        return error('Invalid number format')
    except Exception as e:
        logging.error(f"Error updating hall: {str(e)}")
        return error('Error updating hall', 500)


@app.route('/clear_hall', methods=['POST'])
def clear_hall():
    blocked = pending_decision('clear_hall')
    if blocked:
        return blocked
    hall_id = request.form.get('hall_id', '').strip()
    if seating().halls.clear_hall(hall_id) is None:
        return error('Hall not found', 404)
    return jsonify({'status': 'success', 'message': 'Hall assignments cleared'})


@app.route('/delete_hall', methods=['POST'])
def delete_hall():
    blocked = pending_decision('delete_hall')
    if blocked:
        return blocked
    hall_id = request.form.get('hall_id', '').strip()
    if not hall_id:
        return error('Hall ID is required')
    if not seating().halls.delete_hall(hall_id):
        return error('Hall not found', 404)
    return jsonify({'status': 'success', 'message': 'Hall deleted successfully'})


@app.route('/drop_class', methods=['POST'])
def drop_class():
    """Distribute an unassigned class over a hall"""
    command = ClassDrop(
        class_name=request.form.get('class_name', '').strip(),
        hall_id=request.form.get('hall_id', '').strip(),
    )
    outcome = seating().handle(command)
    return jsonify(outcome.to_dict())


@app.route('/move_seat', methods=['POST'])
def move_seat():
    """Swap two seat occupants"""
    try:
        command = SeatDrop(source=seat_ref_from_form('source'), target=seat_ref_from_form('target'))
    except ValueError:
        return error('Invalid seat index')
    outcome = seating().handle(command)
    return jsonify(outcome.to_dict())


@app.route('/middle_seat', methods=['GET'])
def get_middle_seat():
    pending = seating().pending
    return jsonify({'state': seating().state.value, 'pending': pending.to_dict() if pending else None})


@app.route('/middle_seat', methods=['POST'])
def decide_middle_seat():
    outcome = seating().decide(request.form.get('middle_class', '').strip())
    return jsonify(outcome.to_dict())


@app.route('/middle_seat/cancel', methods=['POST'])
def cancel_middle_seat():
    return jsonify(seating().cancel().to_dict())


@app.route('/exam_details', methods=['GET', 'POST'])
def exam_details():
    details = exam_details_config()
    if request.method == 'POST':
        details = ExamDetails(
            college_name=request.form.get('college_name', details.college_name).strip(),
            department=request.form.get('department', details.department).strip(),
            exam_date=request.form.get('exam_date', details.exam_date).strip(),
        )
        app.config['EXAM_DETAILS'] = details
    return jsonify(details.to_dict())


@app.route('/export_seating')
def export_seating():
    """Export every hall's seating arrangement to one Excel workbook"""
    try:
        halls = seating().halls.halls
        if not halls:
            return error('No halls to export!')

        filepath = excel_handler.export_seating_arrangement(halls, exam_details_config())
        if filepath and os.path.exists(filepath):
            return send_file(os.path.abspath(filepath), as_attachment=True,
                             download_name=os.path.basename(filepath))
        return error('Error exporting seating arrangement', 500)

    except Exception as e:
        logging.error(f"Error exporting seating arrangement: {str(e)}")
        return error(f'Export failed! Error: {str(e)}', 500)


@app.route('/clear_data', methods=['POST'])
def clear_data():
    blocked = pending_decision('clear_data')
    if blocked:
        return blocked
    data_type = request.form.get('data_type')

    if data_type == 'halls':
        seating().reset()
        message = 'All halls removed, students returned to their classes'
    elif data_type == 'all':
        init_session()
        message = 'All data cleared'
    else:
        return error('Unknown data type')

    return jsonify({'status': 'success', 'message': message})


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=5000, debug=True)
