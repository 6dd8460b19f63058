from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["ui"])

@router.get("/", response_class=HTMLResponse)
async def get_html(request: Request):
    """
    Serve the interview page. It reads each question aloud, takes a spoken or
    typed answer, and shows the evaluation once the session is completed.
    """
    api_base = request.app.state.settings.API_PREFIX
    html_content = """
    <!DOCTYPE html>
    <html lang="en">
        <head>
            <meta charset="UTF-8">
            <title>AI Mock Interview</title>
            <meta name="viewport" content="width=device-width, initial-scale=1">
            <style>
                body {
                    margin: 0;
                    font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
                    background: #f4f4f4;
                    color: #333;
                }
                .container {
                    max-width: 800px;
                    margin: 0 auto;
                    padding: 20px;
                }
                .card {
                    background: #fff;
                    border: 1px solid #ddd;
                    border-radius: 8px;
                    padding: 20px;
                    margin-bottom: 20px;
                }
                textarea {
                    width: 100%;
                    min-height: 120px;
                    font-size: 16px;
                    box-sizing: border-box;
                }
                button {
                    padding: 10px 20px;
                    margin: 10px 10px 0 0;
                    font-size: 16px;
                    border: none;
                    border-radius: 4px;
                    cursor: pointer;
                    background-color: #4CAF50;
                    color: #fff;
                }
                button:disabled {
                    background-color: #cccccc;
                    cursor: not-allowed;
                }
                #micBtn.listening {
                    background-color: #f44336;
                }
                #error-message {
                    background: #ffdddd;
                    border: 1px solid #f44336;
                    color: #a94442;
                    padding: 10px;
                    border-radius: 4px;
                    display: none;
                }
                .hidden {
                    display: none;
                }
            </style>
        </head>
        <body>
            <div class="container">
                <h1>AI Mock Interview</h1>
                <div id="error-message"></div>
                <div class="card" id="intro">
                    <button id="startBtn">Start Interview</button>
                </div>
                <div class="card hidden" id="interview">
                    <div id="progress"></div>
                    <h3 id="question"></h3>
                    <textarea id="answer" placeholder="Type your answer, or use the microphone"></textarea>
                    <button id="micBtn">Speak</button>
                    <button id="submitBtn">Submit Answer</button>
                    <button id="finishBtn">Finish Interview</button>
                </div>
                <div class="card hidden" id="results"></div>
            </div>
            <script>
                const API_BASE = "__API_BASE__";
                let sessionId = null;
                let questions = [];
                let currentIndex = 0;
                let startedAt = null;
                let recognition = null;

                const $ = (id) => document.getElementById(id);

                function showError(message) {
                    $('error-message').textContent = message;
                    $('error-message').style.display = message ? 'block' : 'none';
                }

                async function call(path, body) {
                    const res = await fetch(API_BASE + path, {
                        method: 'POST',
                        headers: { 'Content-Type': 'application/json' },
                        body: JSON.stringify(body || {})
                    });
                    const data = await res.json();
                    if (!res.ok) throw new Error(data.error || 'Request failed');
                    return data;
                }

                function speak(text) {
                    if (!('speechSynthesis' in window)) return;
                    window.speechSynthesis.cancel();
                    window.speechSynthesis.speak(new SpeechSynthesisUtterance(text));
                }

                function showQuestion() {
                    const q = questions[currentIndex];
                    $('progress').textContent = `Question ${currentIndex + 1} of ${questions.length} (${q.category})`;
                    $('question').textContent = q.text;
                    $('answer').value = '';
                    $('submitBtn').disabled = false;
                    startedAt = new Date().toISOString();
                    speak(q.text);
                }

                function setupRecognition() {
                    const SpeechRecognition = window.SpeechRecognition || window.webkitSpeechRecognition;
                    if (!SpeechRecognition) {
                        $('micBtn').disabled = true;
                        $('micBtn').title = 'Speech recognition is not supported in this browser';
                        return;
                    }
                    recognition = new SpeechRecognition();
                    recognition.continuous = true;
                    recognition.interimResults = true;
                    recognition.lang = 'en-US';
                    recognition.onresult = (event) => {
                        let transcript = '';
                        for (let i = 0; i < event.results.length; i++) {
                            transcript += event.results[i][0].transcript;
                        }
                        $('answer').value = transcript.trim();
                    };
                    recognition.onend = () => $('micBtn').classList.remove('listening');
                    recognition.onerror = (event) => showError('Speech recognition error: ' + event.error);
                }

                $('micBtn').onclick = () => {
                    if (!recognition) return;
                    if ($('micBtn').classList.contains('listening')) {
                        recognition.stop();
                    } else {
                        $('micBtn').classList.add('listening');
                        recognition.start();
                    }
                };

                $('startBtn').onclick = async () => {
                    showError('');
                    try {
                        const data = await call('/interview/session/start');
                        sessionId = data.sessionId;
                        questions = data.questions;
                        currentIndex = 0;
                        $('intro').classList.add('hidden');
                        $('interview').classList.remove('hidden');
                        showQuestion();
                    } catch (error) {
                        showError(error.message);
                    }
                };

                $('submitBtn').onclick = async () => {
                    const text = $('answer').value.trim();
                    if (!text) {
                        showError('Please provide an answer first.');
                        return;
                    }
                    showError('');
                    if (recognition) recognition.stop();
                    const q = questions[currentIndex];
                    try {
                        await call(`/interview/session/${sessionId}/answer`, {
                            questionId: q.id,
                            questionText: q.text,
                            responseText: text,
                            startedAt: startedAt,
                            answeredAt: new Date().toISOString()
                        });
                        if (currentIndex < questions.length - 1) {
                            currentIndex += 1;
                            showQuestion();
                        } else {
                            $('submitBtn').disabled = true;
                            $('question').textContent = 'That was the last question. Finish the interview to see your results.';
                        }
                    } catch (error) {
                        showError(error.message);
                    }
                };

                $('finishBtn').onclick = async () => {
                    showError('');
                    if (recognition) recognition.stop();
                    try {
                        const { evaluation } = await call(`/interview/session/${sessionId}/complete`);
                        $('interview').classList.add('hidden');
                        const results = $('results');
                        results.replaceChildren();
                        const heading = document.createElement('h3');
                        heading.textContent = 'Results';
                        const summary = document.createElement('p');
                        summary.textContent = evaluation.summary;
                        const list = document.createElement('ul');
                        for (const [name, score] of Object.entries(evaluation.scores)) {
                            const item = document.createElement('li');
                            const label = document.createElement('strong');
                            label.textContent = name;
                            item.append(label, `: ${score}/10 - ${evaluation.feedback[name] || ''}`);
                            list.appendChild(item);
                        }
                        results.append(heading, summary, list);
                        $('results').classList.remove('hidden');
                        speak(evaluation.summary);
                    } catch (error) {
                        showError(error.message);
                    }
                };

                setupRecognition();
            </script>
        </body>
    </html>
    """
    return HTMLResponse(content=html_content.replace("__API_BASE__", api_base))
